"""
Thinking-segment stripping.

Some models interleave private reasoning with their visible answer,
delimited by vendor-specific tags (``<think>...</think>`` by default).
When suppression is requested none of that text may reach the caller,
neither in the final message nor in streamed chunks.

- ThinkingFilter works incrementally on streamed chunks, holding back
  any tail that could still turn out to be part of a tag.
- ThinkingStripper.strip runs the same filter over complete text.

A segment is removed together with the whitespace that follows its
closing tag, and an unclosed segment runs to the end of the text.
Visible text that could still begin a start tag is held until the text
following it is known, so a removal that joins its neighbours into a
new start tag is caught too and stripped output never contains one.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..domain.entities import DEFAULT_THINK_END_TAG, DEFAULT_THINK_START_TAG


@dataclass
class StripResult:
    """Result of thinking-segment stripping.

    Attributes:
        text: Visible text with thinking segments removed
        segments_removed: Number of segments removed
        original_length: Length of original text
    """

    text: str
    segments_removed: int
    original_length: int

    @property
    def was_stripped(self) -> bool:
        return self.segments_removed > 0


def _partial_tag_length(buffer: str, tag: str) -> int:
    """Length of the longest buffer suffix that is a proper prefix of tag."""
    for length in range(min(len(tag) - 1, len(buffer)), 0, -1):
        if buffer.endswith(tag[:length]):
            return length
    return 0


class ThinkingStripper:
    """Removes thinking segments from complete text.

    Usage:
        stripper = ThinkingStripper()
        result = stripper.strip("<think>plan</think>\\nAnswer")
        result.text  # "Answer"
    """

    def __init__(
        self,
        start_tag: str = DEFAULT_THINK_START_TAG,
        end_tag: str = DEFAULT_THINK_END_TAG,
    ):
        if not start_tag or not end_tag:
            raise ValueError("think tags must be non-empty")
        self.start_tag = start_tag
        self.end_tag = end_tag

    def strip(self, text: str) -> StripResult:
        if not text:
            return StripResult(text="", segments_removed=0, original_length=0)

        thinking_filter = self.filter()
        stripped = thinking_filter.feed(text) + thinking_filter.flush()
        return StripResult(
            text=stripped,
            segments_removed=thinking_filter.segments_removed,
            original_length=len(text),
        )

    def filter(self) -> ThinkingFilter:
        """Create a streaming filter using the same tags."""
        return ThinkingFilter(self.start_tag, self.end_tag)


class ThinkingFilter:
    """Incremental thinking-segment removal for streamed text.

    Usage:
        thinking_filter = ThinkingFilter()
        for chunk in chunks:
            visible = thinking_filter.feed(chunk)
            ...
        visible = thinking_filter.flush()
    """

    def __init__(
        self,
        start_tag: str = DEFAULT_THINK_START_TAG,
        end_tag: str = DEFAULT_THINK_END_TAG,
    ):
        if not start_tag or not end_tag:
            raise ValueError("think tags must be non-empty")
        self.start_tag = start_tag
        self.end_tag = end_tag
        self.segments_removed = 0
        self._buffer = ""
        # Visible text ending in a partial start tag, rescanned with what follows
        self._held = ""
        self._inside = False
        self._skip_whitespace = False

    @property
    def inside_segment(self) -> bool:
        return self._inside

    def _release(self, text: str) -> str:
        keep = _partial_tag_length(text, self.start_tag)
        self._held = text[len(text) - keep:] if keep else ""
        return text[:len(text) - keep]

    def feed(self, text: str) -> str:
        """Consume a chunk and return the text that is safe to emit."""
        self._buffer += text
        visible = []

        while self._buffer:
            if self._inside:
                end = self._buffer.find(self.end_tag)
                if end == -1:
                    keep = _partial_tag_length(self._buffer, self.end_tag)
                    self._buffer = self._buffer[len(self._buffer) - keep:] if keep else ""
                    break
                self._buffer = self._buffer[end + len(self.end_tag):]
                self._inside = False
                self._skip_whitespace = True
                self.segments_removed += 1
                continue

            if self._skip_whitespace:
                self._buffer = self._buffer.lstrip()
                if not self._buffer:
                    break
                self._skip_whitespace = False

            work = self._held + self._buffer
            start = work.find(self.start_tag)
            if start == -1:
                cut = len(work) - _partial_tag_length(work, self.start_tag)
                visible.append(self._release(work[:cut]))
                self._buffer = work[cut:]
                break

            visible.append(self._release(work[:start]))
            self._buffer = work[start + len(self.start_tag):]
            self._inside = True

        return "".join(visible)

    def flush(self) -> str:
        """Return held-back text at end of stream.

        An unclosed segment is discarded; held visible text and a
        held-back partial start tag turned out to be ordinary text and
        are released.
        """
        if self._inside:
            self.segments_removed += 1
            rest = self._held
        else:
            rest = self._held + self._buffer

        self._buffer = ""
        self._held = ""
        self._inside = False
        self._skip_whitespace = False
        return rest


def strip_thinking(
    text: str,
    start_tag: str = DEFAULT_THINK_START_TAG,
    end_tag: str = DEFAULT_THINK_END_TAG,
) -> str:
    """Convenience function to strip thinking segments from text."""
    return ThinkingStripper(start_tag, end_tag).strip(text).text
