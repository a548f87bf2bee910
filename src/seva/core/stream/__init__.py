"""Data stream framing and the per-response stream writer."""

from .data_stream import STREAM_HEADERS, STREAM_PART_CODES, DataStreamWriter, format_data_stream_part

__all__ = ["STREAM_HEADERS", "STREAM_PART_CODES", "DataStreamWriter", "format_data_stream_part"]
