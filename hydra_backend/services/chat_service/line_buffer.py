"""
Line buffering and UTF-8 handling for evented-text streams
"""
import codecs
from typing import List


class StreamLineBuffer:
    """
    Reassembles complete lines from arbitrarily split byte chunks.

    Bytes are decoded with an incremental UTF-8 decoder so a multi-byte
    character split across chunks is rebuilt; malformed sequences become
    U+FFFD instead of aborting the stream.
    """

    def __init__(self, max_line_length: int = 1024 * 1024):
        """
        Args:
            max_line_length: Longest partial line kept while waiting for a newline
        """
        self.max_line_length = max_line_length
        self.utf8_decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
        self.buffer = ""
        self.discarding = False
        self.dropped_lines = 0

    def feed(self, chunk: bytes) -> List[str]:
        """
        Add a chunk and return the complete lines it finished, stripped.

        Lines that overflow ``max_line_length`` are dropped whole: the partial
        content is cleared and everything up to the next newline is skipped.
        """
        self.buffer += self.utf8_decoder.decode(chunk, final=False)

        lines = []
        while True:
            newline_pos = self.buffer.find('\n')
            if newline_pos < 0:
                break
            line = self.buffer[:newline_pos]
            self.buffer = self.buffer[newline_pos + 1:]
            if self.discarding:
                self.discarding = False
                continue
            if len(line) > self.max_line_length:
                self.dropped_lines += 1
                continue
            lines.append(line.strip())

        if len(self.buffer) > self.max_line_length:
            self.buffer = ""
            if not self.discarding:
                self.discarding = True
                self.dropped_lines += 1

        return lines

    def remaining(self) -> str:
        """Unterminated text left in the buffer."""
        return self.buffer + self.utf8_decoder.decode(b"", final=True)
