"""
Dispatch & Streaming Aggregator.

Sends an assembled session to a vendor either as one blocking call or as
an incremental stream, and normalizes both into a single assistant
message.

Streaming runs one producer task per active stream. The producer pumps
vendor chunks into an unbounded asyncio.Queue; the consumer (the async
generator handed to the caller) relays each chunk as soon as it arrives
and accumulates the text. Exactly one terminal event ends every stream:
DONE on clean completion, ERROR otherwise.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Optional

from ..domain.entities import (
    ChatOptions,
    ErrorType,
    Message,
    MessageRole,
    Session,
    StreamChunk,
    StreamEvent,
    StreamEventType,
)
from ..domain.exceptions import (
    EmptyResponseError,
    PatternFlowError,
    StreamInterruptedError,
    VendorError,
)
from ..domain.ports import IVendorClient
from .thinking import ThinkingFilter, ThinkingStripper

logger = logging.getLogger(__name__)


@dataclass
class _StreamEnd:
    """Queue sentinel: the vendor signalled completion."""


@dataclass
class _StreamFailure:
    """Queue sentinel: the vendor stream raised."""

    error: BaseException
    cancelled: bool = False


class Dispatcher:
    """Sends sessions to vendor clients.

    Usage:
        dispatcher = Dispatcher()

        # Blocking
        reply = await dispatcher.send(client, session, options)

        # Streaming
        async for event in dispatcher.send_stream(client, session, options):
            if event.type == StreamEventType.CHUNK:
                print(event.content, end="")
    """

    # ============================================
    # Blocking Path
    # ============================================

    async def send(
        self, client: IVendorClient, session: Session, options: ChatOptions
    ) -> Message:
        """Send a session with a single blocking vendor call.

        Args:
            client: Selected vendor client
            session: Session whose messages are sent in order
            options: Per-call options

        Returns:
            The assistant message

        Raises:
            VendorError: On any transport or protocol failure
            EmptyResponseError: If the vendor returned no text
        """
        messages = list(session.messages)
        logger.debug(
            f"Sending {len(messages)} messages to {client.name} "
            f"(model={options.model})"
        )

        try:
            if options.timeout:
                text = await asyncio.wait_for(
                    client.send(messages, options), options.timeout
                )
            else:
                text = await client.send(messages, options)
        except VendorError:
            raise
        except asyncio.TimeoutError as e:
            logger.error(f"{client.name} did not respond within {options.timeout}s")
            raise VendorError(
                f"No response within {options.timeout}s",
                client.name,
                ErrorType.TIMEOUT,
                cause=e,
            ) from e
        except PatternFlowError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected error from {client.name}: {e}")
            raise VendorError(str(e), client.name, ErrorType.FATAL, cause=e) from e

        text = self.post_process(text or "", options)
        if not text:
            raise EmptyResponseError(client.name)

        return Message(role=MessageRole.ASSISTANT, content=text)

    def post_process(self, text: str, options: ChatOptions) -> str:
        """Apply output post-processing to complete assistant text."""
        if options.suppress_thinking:
            result = ThinkingStripper(options.think_start_tag, options.think_end_tag).strip(text)
            if result.was_stripped:
                logger.debug(f"Stripped {result.segments_removed} thinking segments")
            return result.text
        return text

    # ============================================
    # Streaming Path
    # ============================================

    async def _produce(
        self,
        client: IVendorClient,
        messages: list[Message],
        options: ChatOptions,
        queue: asyncio.Queue,
        stopping: asyncio.Event,
    ) -> None:
        """Pump vendor chunks into the queue until completion or failure."""
        stream = client.send_stream(messages, options)

        async def pump() -> None:
            async for chunk in stream:
                queue.put_nowait(chunk)

        try:
            if options.timeout:
                await asyncio.wait_for(pump(), options.timeout)
            else:
                await pump()
            queue.put_nowait(_StreamEnd())
        except asyncio.CancelledError as e:
            if not stopping.is_set():
                # Cancelled by something other than the consumer closing
                queue.put_nowait(_StreamFailure(e, cancelled=True))
            raise
        except asyncio.TimeoutError as e:
            queue.put_nowait(_StreamFailure(VendorError(
                f"Stream did not complete within {options.timeout}s",
                client.name,
                ErrorType.TIMEOUT,
                cause=e,
            )))
        except Exception as e:
            queue.put_nowait(_StreamFailure(e))
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

    async def send_stream(
        self, client: IVendorClient, session: Session, options: ChatOptions
    ) -> AsyncIterator[StreamEvent]:
        """Send a session and relay the vendor's output incrementally.

        Yields CHUNK events in vendor order, then exactly one DONE event
        (carrying the full text) or one ERROR event. Closing the iterator
        early stops the vendor call; that is not reported as an error.
        """
        messages = list(session.messages)

        if not client.descriptor.supports_streaming:
            async for event in self._relay_blocking(client, session, options):
                yield event
            return

        queue: asyncio.Queue = asyncio.Queue()
        stopping = asyncio.Event()
        producer = asyncio.create_task(
            self._produce(client, messages, options, queue, stopping),
            name=f"stream-{client.name}",
        )

        thinking_filter: Optional[ThinkingFilter] = None
        if options.suppress_thinking:
            thinking_filter = ThinkingFilter(options.think_start_tag, options.think_end_tag)

        sequence = 0
        received = 0
        parts: list[str] = []

        try:
            while True:
                item = await queue.get()

                if isinstance(item, StreamChunk):
                    received += 1
                    text = thinking_filter.feed(item.text) if thinking_filter else item.text
                    if text:
                        parts.append(text)
                        sequence += 1
                        yield StreamEvent.chunk(text, sequence)
                    continue

                if isinstance(item, _StreamFailure):
                    sequence += 1
                    yield StreamEvent.error_event(
                        self._interrupted(client, item, received), sequence
                    )
                    return

                break

            if thinking_filter:
                tail = thinking_filter.flush()
                if tail:
                    parts.append(tail)
                    sequence += 1
                    yield StreamEvent.chunk(tail, sequence)

            full_text = "".join(parts)
            sequence += 1

            if not full_text:
                logger.warning(f"{client.name} stream completed without any text")
                yield StreamEvent.error_event(EmptyResponseError(client.name), sequence)
                return

            metadata = {
                "vendor": client.name,
                "model": options.model,
                "chunks_received": received,
            }
            if thinking_filter:
                metadata["thinking_segments_removed"] = thinking_filter.segments_removed
            yield StreamEvent.done(full_text, sequence, metadata=metadata)

        finally:
            if not producer.done():
                logger.debug(f"Closing {client.name} stream early")
                stopping.set()
                producer.cancel()
            await asyncio.gather(producer, return_exceptions=True)

    def _interrupted(
        self, client: IVendorClient, failure: _StreamFailure, received: int
    ) -> StreamInterruptedError:
        if failure.cancelled:
            logger.warning(f"{client.name} stream was cancelled after {received} chunks")
            message = "Vendor stream was cancelled"
        else:
            logger.error(
                f"{client.name} stream failed after {received} chunks: {failure.error}"
            )
            message = f"Vendor stream failed: {failure.error}"

        return StreamInterruptedError(
            message,
            vendor=client.name,
            cancelled=failure.cancelled,
            chunks_received=received,
            cause=failure.error,
        )

    async def _relay_blocking(
        self, client: IVendorClient, session: Session, options: ChatOptions
    ) -> AsyncIterator[StreamEvent]:
        """Serve a stream request from a vendor that cannot stream."""
        try:
            reply = await self.send(client, session, options)
        except (VendorError, EmptyResponseError) as e:
            yield StreamEvent.error_event(e, 1)
            return

        yield StreamEvent.chunk(reply.content, 1)
        yield StreamEvent.done(
            reply.content,
            2,
            metadata={"vendor": client.name, "model": options.model, "chunks_received": 1},
        )

    # ============================================
    # Collecting
    # ============================================

    async def collect(
        self,
        client: IVendorClient,
        session: Session,
        options: ChatOptions,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> Message:
        """Stream a session and return the final assistant message.

        Args:
            on_chunk: Called with each relayed chunk as it arrives

        Raises:
            StreamInterruptedError: If the stream ended abnormally
            EmptyResponseError: If the stream completed without text
        """
        async with aclosing(self.send_stream(client, session, options)) as events:
            async for event in events:
                if event.type == StreamEventType.CHUNK:
                    if on_chunk is not None:
                        on_chunk(event.content or "")
                elif event.type == StreamEventType.ERROR:
                    raise event.error
                elif event.type == StreamEventType.DONE:
                    return Message(role=MessageRole.ASSISTANT, content=event.content or "")

        raise StreamInterruptedError("Stream ended without a terminal event", vendor=client.name)
