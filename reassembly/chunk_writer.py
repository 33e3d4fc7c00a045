"""Validates inbound chunk messages and persists them into the chunk store."""

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import pydantic

from common.constants import KNOWN_COMPRESSIONS
from common.types import ChunkMessage
from reassembly.chunk_store import ChunkStore
from reassembly.exceptions import ValidationError
from reassembly.schemas.messages import ChunkUploadRequest, MessageProperties, Telemetry

logger = logging.getLogger(__name__)


def _missing(name: str) -> ValidationError:
    return ValidationError(f"Missing message property: {name}")


def _invalid(name: str) -> ValidationError:
    return ValidationError(f"Invalid message property: {name}")


def _text_value(value: Any, name: str) -> Optional[str]:
    """
    Read a text property; None and '' count as absent, numbers become strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise _invalid(name)


def _int_value(value: Any, name: str) -> Optional[int]:
    """
    Read an integer property; None and '' count as absent.

    Accepts ints, integral floats and numeric strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise _invalid(name)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            raise _invalid(name) from None
    raise _invalid(name)


def _check_identifier(value: str, name: str) -> None:
    """Reject ids that would escape the flat temp area."""
    if os.sep in value or (os.altsep and os.altsep in value) or value in (".", ".."):
        raise _invalid(name)


def normalize_target_path(filepath: Optional[str]) -> str:
    """
    Normalize a message's relative target path.

    Args:
        filepath: Raw 'filepath' message property

    Returns:
        Normalized relative path

    Raises:
        ValidationError: If the path is missing, reduces to '.', is absolute,
            or climbs out of the output area
    """
    if not filepath:
        raise _missing("filepath")
    normalized = os.path.normpath(filepath)
    if normalized == ".":
        raise _missing("filepath")
    if os.path.isabs(normalized) or normalized == ".." or normalized.startswith(".." + os.sep):
        raise _invalid("filepath")
    return normalized


def to_request(body: Union[ChunkUploadRequest, Mapping[str, Any]]) -> ChunkUploadRequest:
    """
    Coerce a raw message body into the request schema.

    Raises:
        ValidationError: If the body or one of its property groups is not an object
    """
    if isinstance(body, ChunkUploadRequest):
        return body
    if not isinstance(body, Mapping):
        raise ValidationError("Invalid request body")
    try:
        return ChunkUploadRequest.model_validate(dict(body))
    except pydantic.ValidationError as e:
        loc = e.errors()[0].get("loc", ())
        if len(loc) >= 2 and loc[0] == "messageProperties":
            raise _invalid(str(loc[1])) from e
        if len(loc) >= 2 and loc[0] == "telemetry":
            raise ValidationError(f"Invalid telemetry property: {loc[1]}") from e
        if loc:
            raise ValidationError(f"Invalid property: {loc[0]}") from e
        raise ValidationError("Invalid request body") from e


def parse_chunk_message(
    body: Union[ChunkUploadRequest, Mapping[str, Any]],
    log: Optional[logging.Logger] = None
) -> ChunkMessage:
    """
    Validate an inbound body and build a ChunkMessage.

    Checks run in a fixed order and the first failure wins: id, filepath,
    part, maxPart, compression, deviceId, contentChunk.

    Args:
        body: Parsed JSON body or ChunkUploadRequest
        log: Logger for the suspicious-compression warning

    Returns:
        Validated ChunkMessage

    Raises:
        ValidationError: If a required property is missing or invalid
    """
    log = log or logger
    request = to_request(body)
    props = request.messageProperties or MessageProperties()
    telemetry = request.telemetry or Telemetry()

    message_id = _text_value(props.id, "id")
    if not message_id:
        raise _missing("id")
    _check_identifier(message_id, "id")

    target_path = normalize_target_path(_text_value(props.filepath, "filepath"))

    part = _int_value(props.part, "part")
    if part is None:
        raise _missing("part")
    if part < 0:
        raise _invalid("part")

    total_parts = _int_value(props.maxPart, "maxPart")
    if not total_parts or total_parts < 1:
        raise _missing("maxPart")

    compression = _text_value(props.compression, "compression")
    if not compression:
        raise _missing("compression")
    compression = compression.lower()
    if compression not in KNOWN_COMPRESSIONS:
        log.warning(f"compression message property is invalid, received: {compression}")

    device_id = _text_value(request.deviceId, "deviceId")
    if not device_id:
        raise ValidationError("Missing property: deviceId")
    _check_identifier(device_id, "deviceId")

    if telemetry.contentChunk is None:
        raise ValidationError("Missing telemetry property: contentChunk")
    if not isinstance(telemetry.contentChunk, str):
        raise ValidationError("Invalid telemetry property: contentChunk")

    return ChunkMessage(
        device_id=device_id,
        message_id=message_id,
        target_path=target_path,
        part_index=part,
        total_parts=total_parts,
        compression=compression,
        payload_text=telemetry.contentChunk,
    )


class ChunkWriter:
    """
    Validates chunk messages and writes their payload text into a ChunkStore.
    """

    def __init__(self, store: ChunkStore):
        self.store = store

    def accept(
        self,
        body: Union[ChunkUploadRequest, Mapping[str, Any]],
        log: Optional[logging.Logger] = None
    ) -> ChunkMessage:
        """
        Validate a body and persist its chunk.

        Args:
            body: Parsed JSON body or ChunkUploadRequest
            log: Logger for this invocation

        Returns:
            The validated ChunkMessage

        Raises:
            ValidationError: If the message is invalid (nothing is written)
            OSError: If the write fails
        """
        message = parse_chunk_message(body, log)
        self.write(message, log)
        return message

    def write(self, message: ChunkMessage, log: Optional[logging.Logger] = None) -> Path:
        """
        Store a validated chunk verbatim; a repeated part overwrites the earlier one.
        """
        log = log or logger
        log.info(
            f"device_id {message.device_id} file_id: {message.message_id} "
            f"part: {message.part_index} of: {message.total_parts} "
            f"filepath: {os.path.dirname(message.target_path) or '.'} "
            f"filename: {os.path.basename(message.target_path)}"
        )
        return self.store.write_part(message.key, message.part_index, message.payload_text)
