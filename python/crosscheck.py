#!/usr/bin/env python3
#
# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

import argparse
import random
import sys

import chacha
import rc4
import reference
import tracesink

def fail(msg):
    sys.stderr.write(f'Error: {msg}\n')
    sys.exit(1)

def randbytes(l, r):
    return bytes(r.randrange(0x100) for _ in range(l))

IMPLS = {
    'rc4': (rc4.RC4, reference.RC4Reference),
    'chacha20': (chacha.ChaCha20, reference.ChaCha20Reference),
}

def do_test_impl(args, impl, ref_impl, r, trace=None):
    variants = list(impl.variants())
    sizes = []

    for n in range(args.num_msgs):
        impl.variant = r.choice(variants)
        lengths = impl.lengths()
        size = max(1, int(r.expovariate(1 / args.avg_msgsize)))
        orig_msg = randbytes(size, r)
        key = randbytes(lengths['key'], r)
        extra = {k: randbytes(v, r) for k, v in lengths.items() if k != 'key'}

        sizes.append(size)

        # Only the first message is traced; per-byte lines get large quickly.
        impl.trace = trace if trace is not None and n == 0 else tracesink.Trace()

        impl.initialize(key)
        ref_impl.initialize(key)

        ref_ctext = ref_impl.process(orig_msg, **extra)
        ctext = impl.process(orig_msg, **extra)
        if len(ctext) != len(orig_msg):
            fail(f"{impl.name()} didn't preserve length!")
        if ref_ctext != ctext:
            fail(f'{impl.name()} encryption results differed for a {size} byte message')
        if impl.process(orig_msg, **extra) != ctext:
            fail(f'{impl.name()} gave a different result on a repeated call')
        if impl.process(ctext, **extra) != orig_msg:
            fail(f"{impl.name()} decryption didn't invert encryption")

    return sizes

def test_impl(args, name, trace=None):
    impl_class, ref_class = IMPLS[name]
    print(f'Testing {name}...')
    r = random.Random(repr((args.seed, name)))
    sizes = do_test_impl(args, impl_class(), ref_class(), r, trace=trace)
    print(f'\t{len(sizes)} messages, {sum(sizes)} bytes matched the reference')

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="""Verify that the RC4 and
    ChaCha20 engines produce the same results as the pycryptodomex
    implementations.""")
    parser.add_argument('--num-msgs', type=int, default=128,
                        help='number of messages to test per cipher')
    parser.add_argument('--avg-msgsize', type=int, default=1024,
                        help='typical message size in bytes')
    parser.add_argument('--seed', type=int, default=0,
                        help='seed for the message generator')
    parser.add_argument('--cipher', choices=sorted(IMPLS), action='append',
                        help='cipher to test; may be repeated (default: all)')
    parser.add_argument('--trace', metavar='PATH',
                        help='append a trace of the first message per cipher to PATH')
    args = parser.parse_args(argv)
    if args.avg_msgsize < 1:
        parser.error("--avg-msgsize must be at least 1")
    return args

def main(argv=None):
    args = parse_args(argv)
    ciphers = args.cipher or sorted(IMPLS)

    print('Arguments:')
    print(f'\tNumber of messages:     {args.num_msgs}')
    print(f'\tTypical message size:   {args.avg_msgsize}')
    print(f'\tSeed:                   {args.seed}')
    print(f'\tCiphers:                {", ".join(ciphers)}')
    print('')

    trace = tracesink.FileTrace(args.trace) if args.trace else None
    for name in ciphers:
        test_impl(args, name, trace=trace)

if __name__ == "__main__":
    main()
