"""Streaming conversion over chunked input and output."""

import asyncio
import logging
import math
from typing import TYPE_CHECKING, Any, AsyncIterator, Iterable, List, Optional, Union

from .options import ConversionOptions, resolve_limits
from .types import ConversionError, ConversionSizeError, StreamingChunk
from .utils.size_calculator import SizeCalculator

if TYPE_CHECKING:
    from .converter import FormatConverter


class StreamingConverter:
    """
    Streaming front end for a FormatConverter.

    Input chunks are gathered under the input byte limit, converted in one
    pass on a worker thread and the output is handed back in slices of
    ``chunk_size`` characters. The event loop is released between slices.
    """

    def __init__(self, converter: "FormatConverter", chunk_size: int = 64 * 1024,
                 logger: Optional[logging.Logger] = None):
        """
        Initialize the streaming converter.

        Args:
            converter: Converter used for the actual conversion
            chunk_size: Output slice size in characters
            logger: Optional logger instance
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.converter = converter
        self.chunk_size = chunk_size
        self.logger = logger or logging.getLogger(__name__)
        self.size_calculator = SizeCalculator(self.logger)

    async def collect(self, chunks: Union[AsyncIterator[str], Iterable[str]],
                      limit: int) -> List[str]:
        """
        Gather input chunks, enforcing the byte limit as they arrive.

        Args:
            chunks: Async or sync iterable of text chunks
            limit: Maximum total input size in bytes

        Returns:
            The collected chunks

        Raises:
            ConversionSizeError: As soon as the running total exceeds the limit
        """
        parts: List[str] = []
        total = 0

        def accept(chunk: Any) -> None:
            nonlocal total
            if isinstance(chunk, bytes):
                chunk = chunk.decode("utf-8")
            total += self.size_calculator.utf8_length(chunk)
            if total > limit:
                raise ConversionSizeError(total, limit, stage="input")
            parts.append(chunk)

        if hasattr(chunks, "__aiter__"):
            async for chunk in chunks:
                accept(chunk)
        else:
            for index, chunk in enumerate(chunks):
                accept(chunk)
                if index % 100 == 0:
                    await asyncio.sleep(0)
        return parts

    async def convert_stream(self, chunks: Union[AsyncIterator[str], Iterable[str]],
                             source_format: Any, target_format: Any,
                             options: Optional[ConversionOptions] = None) -> AsyncIterator[StreamingChunk]:
        """
        Convert chunked input and stream the output in slices.

        A failure is reported as a single final chunk carrying the error.

        Args:
            chunks: Async or sync iterable of text chunks
            source_format: Source format, or None to auto-detect
            target_format: Target format
            options: Conversion options

        Yields:
            StreamingChunk objects; the last one has ``done`` set
        """
        limits = resolve_limits(options)
        try:
            parts = await self.collect(chunks, limits.max_input_bytes)
        except ConversionError as e:
            response = self.converter.error_handler.handle_error(e)
            self.logger.warning(f"Streaming input rejected: {response.suggested_action}")
            yield StreamingChunk(done=True, data=None, progress=0.0, chunk_index=0,
                                 total_chunks=0, error=e)
            return

        self.logger.debug(f"Collected {len(parts)} input chunks")
        result = await self.converter.convert_async("".join(parts), source_format, target_format, options)
        if not result.success:
            yield StreamingChunk(done=True, data=None, progress=0.0, chunk_index=0,
                                 total_chunks=0, error=result.error, metadata=result.metadata)
            return

        output = result.data
        total_chunks = max(1, math.ceil(len(output) / self.chunk_size))
        metadata = result.metadata
        metadata.streaming_used = True
        metadata.chunks_processed = total_chunks

        for index in range(total_chunks):
            done = index == total_chunks - 1
            yield StreamingChunk(
                done=done,
                data=output[index * self.chunk_size:(index + 1) * self.chunk_size],
                progress=(index + 1) / total_chunks,
                chunk_index=index,
                total_chunks=total_chunks,
                metadata=metadata if done else None,
            )
            await asyncio.sleep(0)

        self.logger.info(f"Streamed {len(output)} characters in {total_chunks} chunks")
