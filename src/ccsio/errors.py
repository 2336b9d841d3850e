from __future__ import annotations


class CcsIoError(Exception):
    """Base class for ccsio errors."""


class InvalidReference(CcsIoError, ValueError):
    """A reference is neither a .fofn nor a .bam file."""

    def __init__(self, path: str, message: str | None = None) -> None:
        self.path = path
        super().__init__(message or f"not a .fofn or .bam file: {path!r}")


class CyclicReference(InvalidReference):
    """A .fofn includes itself, directly or through other .fofn files."""

    def __init__(self, path: str, chain: tuple[str, ...]) -> None:
        self.chain = chain
        cycle = " -> ".join((*chain, path))
        super().__init__(path, f"cyclic .fofn reference: {cycle}")
