# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

import copy

import tracesink

class CipherError(Exception):
    pass

class UninitializedKey(CipherError):
    pass

class InvalidKeyLength(CipherError):
    pass

class InvalidNonceLength(CipherError):
    pass

def xor_into(output, data, stream, offset=0):
    """XOR data[offset:] against stream, writing into output[offset:].

    Only the overlapping length is processed; the number of bytes written
    is returned."""
    chunk = data[offset:offset + len(stream)]
    for i, (x, y) in enumerate(zip(chunk, stream)):
        output[offset + i] = x ^ y
    return len(chunk)

class Cipher(object):
    def copy(self): return copy.deepcopy(self)

    def name(self):
        return type(self).__name__

    @property
    def variant(self):
        return self._variant

    @variant.setter
    def variant(self, value):
        if value not in self.variants():
            raise CipherError(f"Not a variant: {value}")
        self._variant = value

    def choose_variant(self, criterion):
        for v in self.variants():
            if criterion(v):
                self.variant = v
                return
        raise CipherError("No variant matching criterion")

    def lengths(self):
        return self.variant["lengths"]

class ARXCipher(Cipher):
    def _to_ints(self, b):
        assert len(b) % self._word_bytes == 0
        l = len(b) // self._word_bytes
        return [int.from_bytes(b[i:i + self._word_bytes], byteorder=self._byteorder)
            for i in range(0, l * self._word_bytes, self._word_bytes)]

    def _from_ints(self, ints):
        return b''.join(i.to_bytes(self._word_bytes, byteorder=self._byteorder) for i in ints)

    def _mod(self, i):
        return i & ((1 << (self._word_bytes * 8))-1)

    def _rotl(self, i, r):
        return self._mod((i << r) | (i >> (self._word_bytes * 8 - r)))

class StreamCipher(Cipher):
    """Common contract: initialize(key), then process(data, ...) -> bytes.

    process is XOR against a keystream that depends only on the key and the
    call's own arguments, so it both encrypts and decrypts."""

    def __init__(self, trace=None):
        self._key = None
        self.trace = trace if trace is not None else tracesink.Trace()
        self.choose_variant(self._default_variant)

    def _default_variant(self, v):
        return True

    def _check_key(self, key):
        pass

    def _check_stored_key(self, key):
        pass

    def initialize(self, key):
        key = memoryview(key).tobytes()
        self._check_key(key)
        self._key = key
        self.trace.data("Initialized engine with key", key)

    def _require_key(self):
        if self._key is None:
            raise UninitializedKey(f"{self.name()}: process called before initialize")
        self._check_stored_key(self._key)
        return self._key

    def process(self, data, **kw):
        raise NotImplementedError

    def make_testvector(self, input, description):
        input = input.copy()
        self.initialize(input["key"])
        pt = input.pop("plaintext")
        ct = self.process(pt, **{k: v for k, v in input.items() if k != "key"})
        return {
            "cipher": self.variant,
            "description": description,
            "input": input,
            "plaintext": pt,
            "ciphertext": ct,
        }

    def check_testvector(self, tv):
        d = tv["input"].copy()
        self.initialize(d.pop("key"))
        assert tv["ciphertext"] == self.process(tv["plaintext"], **d)
        assert tv["plaintext"] == self.process(tv["ciphertext"], **d)
