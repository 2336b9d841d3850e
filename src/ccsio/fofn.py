from __future__ import annotations

import logging
from typing import Iterable

from .errors import CyclicReference, InvalidReference
from .paths import absolute_path, file_extension

logger = logging.getLogger(__name__)

FOFN_EXTENSION = "fofn"
BAM_EXTENSION = "bam"


def _iter_fofn_lines(path: str) -> Iterable[str]:
    with open(path, "r", encoding="utf-8") as handle:
        for raw in handle:
            yield raw.strip()


def _flatten(out: list[str], reference: str, stack: tuple[str, ...]) -> None:
    extension = file_extension(reference).lower()
    if extension == FOFN_EXTENSION:
        key = absolute_path(reference)
        if key in stack:
            raise CyclicReference(reference, stack)
        logger.debug("expanding %s", reference)
        for line in _iter_fofn_lines(reference):
            _flatten(out, line, (*stack, key))
    elif extension == BAM_EXTENSION:
        out.append(reference)
    else:
        raise InvalidReference(reference)


def resolve_references(references: Iterable[str]) -> list[str]:
    """Flatten .bam and .fofn references into a list of .bam paths.

    Each .fofn is read line by line and every stripped line is resolved in
    turn, so the result is a depth-first, left-to-right flattening of the
    input. Anything that is neither a .fofn nor a .bam raises
    InvalidReference, and that includes blank lines inside a .fofn. A .fofn
    that includes itself raises CyclicReference. Errors opening a .fofn
    propagate unchanged.
    """
    out: list[str] = []
    n_inputs = 0
    for reference in references:
        _flatten(out, reference, ())
        n_inputs += 1
    logger.debug("resolved %d reference(s) to %d bam file(s)", n_inputs, len(out))
    return out
