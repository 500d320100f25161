# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

"""The engine contract backed by pycryptodomex, for cross-checking."""

import Cryptodome.Cipher.ARC4
import Cryptodome.Cipher.ChaCha20

class RC4Reference(object):
    def initialize(self, key):
        self._key = memoryview(key).tobytes()

    def process(self, data):
        a = Cryptodome.Cipher.ARC4.new(self._key)
        return a.encrypt(bytes(data))

class ChaCha20Reference(object):
    def initialize(self, key):
        self._key = memoryview(key).tobytes()

    def process(self, data, nonce):
        c = Cryptodome.Cipher.ChaCha20.new(key=self._key, nonce=bytes(nonce))
        return c.encrypt(bytes(data))
