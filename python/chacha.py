# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

import cipher

class ChaCha20(cipher.StreamCipher, cipher.ARXCipher):
    """ChaCha20 with a 64-bit nonce and a 64-bit block counter.

    The counter starts at zero on every process() call.  Apart from the key
    nothing is stored on the instance, so one engine may be used from
    several threads."""

    _byteorder = 'little'
    _word_bytes = 4
    _block_bytes = 64
    _constant = b"expand 32-byte k"

    _positions = {
        "const": list(range(4)),
        "key": list(range(4, 12)),
        "offset": [12, 13],
        "nonce": [14, 15],
    }

    _round_positions = [
        [0, 4, 8, 12],
        [1, 5, 9, 13],
        [2, 6, 10, 14],
        [3, 7, 11, 15],
        [0, 5, 10, 15],
        [1, 6, 11, 12],
        [2, 7, 8, 13],
        [3, 4, 9, 14]
    ]

    _rotls = [16, 12, 8, 7]

    def variants(self):
        yield {"cipher": self.name(), "rounds": 20, "lengths": {
            "key": self._length("key"), "nonce": self._length("nonce")}}

    def _length(self, k):
        return self._word_bytes * len(self._positions[k])

    def _check_key(self, key):
        if len(key) != self._length("key"):
            raise cipher.InvalidKeyLength("Expected {} bytes for key, got {}".format(
                self._length("key"), len(key)))

    def _check_nonce(self, nonce):
        if len(nonce) != self._length("nonce"):
            raise cipher.InvalidNonceLength("Expected {} bytes for nonce, got {}".format(
                self._length("nonce"), len(nonce)))

    def initial_block(self, nonce, offset):
        d = {
            "const": self._constant,
            "key": self._require_key(),
            "offset": offset.to_bytes(self._length("offset"), byteorder=self._byteorder),
            "nonce": memoryview(nonce).tobytes(),
        }
        block = [0] * 16
        for k, v in d.items():
            for p, vv in zip(self._positions[k], self._to_ints(v)):
                block[p] = vv
        return block

    def quarterround(self, l):
        a, b, c, d = tuple(l)
        r = self._rotls
        a = self._mod(a + b); d ^= a; d = self._rotl(d, r[0])
        c = self._mod(c + d); b ^= c; b = self._rotl(b, r[1])
        a = self._mod(a + b); d ^= a; d = self._rotl(d, r[2])
        c = self._mod(c + d); b ^= c; b = self._rotl(b, r[3])
        return [a, b, c, d]

    def doubleround(self, state):
        for positions in self._round_positions:
            result = self.quarterround([state[p] for p in positions])
            for p, r in zip(positions, result):
                state[p] = r

    def apply_rounds(self, state):
        for i in range(self.variant["rounds"] // 2):
            self.doubleround(state)
            self.trace.words(f"State after double round {i + 1}", tuple(state))

    def gen_output(self, nonce, offset):
        """Keystream block for an arbitrary 64-bit counter value."""
        self._check_nonce(nonce)
        initial = self.initial_block(nonce, offset)
        self.trace.words("Block before transformation", tuple(initial))
        state = initial[:]
        self.apply_rounds(state)
        self.trace.words("Block after transformation", tuple(state))
        # Feed-forward: add the initial block back in, word by word.
        state = [self._mod(s + i) for s, i in zip(state, initial)]
        return self._from_ints(state)

    def _crypt(self, data, nonce):
        self._require_key()
        data = memoryview(data).tobytes()
        nonce = memoryview(nonce).tobytes()
        self._check_nonce(nonce)
        self.trace.data("Using nonce", nonce)
        output = bytearray(len(data))
        for offset, start in enumerate(range(0, len(data), self._block_bytes)):
            stream = self.gen_output(nonce, offset)
            self.trace.data("Resulting keystream", stream)
            n = cipher.xor_into(output, data, stream, start)
            self.trace.xor(start, data[start:start + n], stream, bytes(output[start:start + n]))
        return output

    def keystream(self, length, nonce):
        return bytes(self._crypt(bytes(length), nonce))

    def process(self, data, nonce):
        output = self._crypt(data, nonce)
        self.trace.message("Finished processing input.")
        self.trace.flush()
        return bytes(output)
