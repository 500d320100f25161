# Copyright 2018 Google LLC
#
# Use of this source code is governed by an MIT-style
# license that can be found in the LICENSE file or at
# https://opensource.org/licenses/MIT.

"""Diagnostic sinks for the stream cipher engines.

Engines call every method unconditionally; the base Trace discards
everything, so tracing costs a method call and nothing else."""

import datetime
import pathlib
import sys

def groupto(it, l):
    res = []
    for i in it:
        res.append(i)
        if len(res) == l:
            yield res
            res = []
    if res:
        yield res

def hexdash(b):
    return "-".join(f"{e:02X}" for e in b)

class Trace(object):
    def message(self, text):
        pass

    def data(self, label, b):
        pass

    def words(self, label, words):
        pass

    def table(self, label, b):
        pass

    def xor(self, offset, data, stream, output):
        pass

    def flush(self):
        pass

class TextTrace(Trace):
    """Renders trace calls as lines of text; subclasses decide where they go."""

    def write_line(self, line):
        raise NotImplementedError

    def message(self, text):
        self.write_line(text)

    def data(self, label, b):
        self.write_line(f"{label}: {hexdash(b)}")

    def words(self, label, words):
        self.write_line(f"{label}:")
        for row in groupto(words, 4):
            self.write_line(" ".join(f"{w:08X}" for w in row))

    def table(self, label, b):
        self.write_line(f"{label}:")
        for i, l in enumerate(groupto(b, 16)):
            self.write_line(f"{i*16:8x} {' '.join(f'{e:02x}' for e in l)}")

    def xor(self, offset, data, stream, output):
        # data and output are the chunk starting at offset.
        for i, (d, s, o) in enumerate(zip(data, stream, output)):
            self.write_line(f"[{offset + i}] {d:02X} ^ {s:02X} = {o:02X}")

class PrintTrace(TextTrace):
    def __init__(self, stream=None):
        self._stream = stream

    def write_line(self, line):
        print(line, file=self._stream if self._stream is not None else sys.stderr)

class FileTrace(TextTrace):
    """Buffers timestamped lines in memory; flush() appends them to a file."""

    def __init__(self, path):
        self.path = pathlib.Path(path)
        self._lines = []

    def write_line(self, line):
        now = datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        self._lines.append(f"[{now}] {line}\n")

    def flush(self):
        if not self._lines:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a") as f:
            f.writelines(self._lines)
        self._lines = []
