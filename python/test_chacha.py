# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

import concurrent.futures
import io
import random

import pytest
from Cryptodome.Cipher import ChaCha20 as RefChaCha20

import chacha
import cipher
import tracesink

_rng = random.Random(20181017)

def randbytes(n):
    return bytes(_rng.randrange(0x100) for _ in range(n))

def make_engine(key=None, trace=None):
    ch = chacha.ChaCha20(trace=trace)
    ch.initialize(key if key is not None else bytes(range(32)))
    return ch

class RecordingTrace(tracesink.Trace):
    def __init__(self):
        self.xors = []
        self.flushes = 0

    def xor(self, offset, data, stream, output):
        self.xors.append((offset, len(stream), len(data), len(output)))

    def flush(self):
        self.flushes += 1

@pytest.mark.parametrize("size", [0, 1, 63, 64, 65, 100, 128, 1000])
def test_round_trip_and_length(size):
    ch = make_engine(randbytes(32))
    nonce = randbytes(8)
    msg = randbytes(size)
    ct = ch.process(msg, nonce)
    assert len(ct) == size
    assert ch.process(ct, nonce) == msg

def test_empty_input():
    assert make_engine().process(b"", bytes(8)) == b""

@pytest.mark.parametrize("size", [1, 63, 64, 65, 100, 1000, 4096])
def test_matches_pycryptodome(size):
    key = randbytes(32)
    nonce = randbytes(8)
    msg = randbytes(size)
    ref = RefChaCha20.new(key=key, nonce=nonce)
    assert make_engine(key).process(msg, nonce) == ref.encrypt(msg)

def test_counter_restarts_each_call():
    ch = make_engine()
    nonce = bytes(range(8))
    msg = randbytes(200)
    first = ch.process(msg, nonce)
    assert ch.process(msg, nonce) == first
    assert ch.keystream(64, nonce) == ch.gen_output(nonce, 0)

def test_multi_block_boundary():
    trace = RecordingTrace()
    ch = make_engine(trace=trace)
    nonce = bytes(8)
    out = ch.process(bytes(100), nonce)
    assert out[:64] == ch.gen_output(nonce, 0)
    assert out[64:] == ch.gen_output(nonce, 1)[:36]
    assert trace.xors == [(0, 64, 64, 64), (64, 64, 36, 36)]
    assert trace.flushes == 1

def test_nonce_changes_keystream():
    ch = make_engine()
    assert ch.keystream(64, bytes(8)) != ch.keystream(64, b"\0" * 7 + b"\1")

def test_counter_uses_both_words():
    ch = make_engine()
    block = ch.initial_block(bytes(8), (5 << 32) | 7)
    assert block[12:14] == [7, 5]
    assert ch.gen_output(bytes(8), 1 << 32) != ch.gen_output(bytes(8), 0)

def test_counter_out_of_range():
    with pytest.raises(OverflowError):
        make_engine().gen_output(bytes(8), 1 << 64)

def test_key_is_copied():
    key = bytearray(range(32))
    ch = make_engine(key)
    before = ch.process(bytes(16), bytes(8))
    key[0] ^= 0xff
    assert ch.process(bytes(16), bytes(8)) == before

def test_accepts_bytes_like():
    ch = make_engine()
    msg = randbytes(70)
    expected = ch.process(msg, bytes(8))
    assert ch.process(bytearray(msg), bytearray(8)) == expected
    assert ch.process(memoryview(msg), bytes(8)) == expected

def test_trace_does_not_change_output():
    buf = io.StringIO()
    traced = make_engine(trace=tracesink.PrintTrace(buf))
    msg = randbytes(80)
    nonce = randbytes(8)
    assert traced.process(msg, nonce) == make_engine().process(msg, nonce)
    text = buf.getvalue()
    assert "Using nonce" in text
    assert text.count("Block before transformation") == 2
    assert "State after double round 10" in text
    assert "Finished processing input." in text

def test_shared_engine_across_threads():
    ch = make_engine()
    nonce = bytes(8)
    msgs = [randbytes(300) for _ in range(8)]
    expected = [ch.process(m, nonce) for m in msgs]
    with concurrent.futures.ThreadPoolExecutor(max_workers=4) as ex:
        results = list(ex.map(lambda m: ch.process(m, nonce), msgs))
    assert results == expected

@pytest.mark.parametrize("length", [0, 16, 31, 33, 64])
def test_invalid_key_length(length):
    with pytest.raises(cipher.InvalidKeyLength):
        chacha.ChaCha20().initialize(bytes(length))

def test_invalid_key_keeps_previous_key():
    ch = make_engine()
    expected = ch.process(bytes(10), bytes(8))
    with pytest.raises(cipher.InvalidKeyLength):
        ch.initialize(bytes(31))
    assert ch.process(bytes(10), bytes(8)) == expected

@pytest.mark.parametrize("length", [0, 7, 9, 12])
def test_invalid_nonce_length(length):
    with pytest.raises(cipher.InvalidNonceLength):
        make_engine().process(b"abc", bytes(length))

def test_key_and_nonce_must_be_bytes_like():
    with pytest.raises(TypeError):
        chacha.ChaCha20().initialize(32)
    ch = make_engine()
    with pytest.raises(TypeError):
        ch.process(b"abc", 8)
    with pytest.raises(TypeError):
        ch.process(3, bytes(8))

def test_uninitialized():
    with pytest.raises(cipher.UninitializedKey):
        chacha.ChaCha20().process(b"abc", bytes(8))

def test_errors_are_cipher_errors():
    assert issubclass(cipher.UninitializedKey, cipher.CipherError)
    assert issubclass(cipher.InvalidKeyLength, cipher.CipherError)
    assert issubclass(cipher.InvalidNonceLength, cipher.CipherError)

def test_variant():
    ch = chacha.ChaCha20()
    assert ch.variant == {"cipher": "ChaCha20", "rounds": 20,
        "lengths": {"key": 32, "nonce": 8}}
