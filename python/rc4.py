# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

import cipher

TABLE_SIZE = 256

def _schedule(table, key):
    for i in range(TABLE_SIZE):
        table[i] = i
    j = 0
    klen = len(key)
    for i in range(TABLE_SIZE):
        j = (j + table[i] + key[i % klen]) & 0xff
        table[i], table[j] = table[j], table[i]

def ksa(key):
    """Return a fresh permutation table for key (Key-Scheduling Algorithm)."""
    if not key:
        raise cipher.InvalidKeyLength("RC4 key must not be empty")
    table = bytearray(TABLE_SIZE)
    _schedule(table, key)
    return table

def _generate(table, length):
    out = bytearray(length)
    p1 = 0
    p2 = 0
    for k in range(length):
        p1 = (p1 + 1) & 0xff
        p2 = (p2 + table[p1]) & 0xff
        table[p1], table[p2] = table[p2], table[p1]
        out[k] = table[(table[p1] + table[p2]) & 0xff]
    return out

class RC4(cipher.StreamCipher):
    """RC4 with the key schedule re-run on every call.

    The permutation table belongs to the instance and is rebuilt in place
    by each process() call, so one instance must not be shared between
    threads."""

    def __init__(self, trace=None):
        self._table = bytearray(TABLE_SIZE)
        super().__init__(trace=trace)

    def variants(self):
        for k in [5, 16, 32]:
            yield {"cipher": "RC4", "lengths": {"key": k}}

    def _default_variant(self, v):
        return v["lengths"]["key"] == 16

    def _check_stored_key(self, key):
        if len(key) == 0:
            raise cipher.InvalidKeyLength("RC4 key must not be empty")

    @property
    def table(self):
        return bytes(self._table)

    def _reset(self):
        _schedule(self._table, self._require_key())
        self.trace.table("Permutation table after key schedule", bytes(self._table))

    def keystream(self, length):
        self._reset()
        return bytes(_generate(self._table, length))

    def process(self, data):
        data = memoryview(data).tobytes()
        self._reset()
        stream = bytes(_generate(self._table, len(data)))
        self.trace.data("Keystream", stream)
        output = bytearray(len(data))
        cipher.xor_into(output, data, stream)
        self.trace.xor(0, data, stream, bytes(output))
        self.trace.message("Finished processing input.")
        self.trace.flush()
        return bytes(output)
