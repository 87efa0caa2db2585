from collections.abc import Iterator


class TextWindows:
    """Overlapping character windows over a text.

    Windows are produced lazily and the object can be iterated any number of
    times; each pass yields the same sequence.
    """

    def __init__(self, text: str, size: int, step: int) -> None:
        self._text = text
        self._size = size
        self._step = step

    def __iter__(self) -> Iterator[str]:
        cursor = 0
        length = len(self._text)
        while cursor < length:
            window = self._text[cursor : cursor + self._size].strip()
            if window:
                yield window
            cursor += self._step

    def __repr__(self) -> str:
        return f"TextWindows(length={len(self._text)}, size={self._size}, step={self._step})"


class Chunker:
    """Splits page text into overlapping fixed-size character windows."""

    def __init__(self, size: int = 1200, overlap: int = 150) -> None:
        if size < 1:
            raise ValueError(f"chunk size must be positive, got {size}")
        self._size = size
        self._overlap = max(0, overlap)

    @property
    def step(self) -> int:
        # overlap >= size would never advance the cursor
        return max(1, self._size - self._overlap)

    def chunk(self, text: str) -> TextWindows:
        return TextWindows(text, self._size, self.step)
