"""
Part planning for multipart uploads.

Splits a byte count into contiguous fixed-size ranges. Every part except the
last is exactly ``min_part_size`` bytes; the last holds the remainder.
"""

from fieldagent_uploads.config.constants import MAX_PARTS, MIN_PART_SIZE
from fieldagent_uploads.exceptions import InvalidInputError, TooManyPartsError
from .models import PartPlan, PartSpec


def _require_int(name: str, value: object) -> int:
  # bool is an int subclass but never a valid size
  if isinstance(value, bool) or not isinstance(value, int):
    raise InvalidInputError(
      f"{name} must be an integer, got {type(value).__name__}", **{name: value}
    )
  return value


def count_parts(total_size: int, min_part_size: int = MIN_PART_SIZE) -> int:
  """Number of parts ``plan_parts`` would produce (at least 1)."""
  full_parts, remainder = divmod(total_size, min_part_size)
  return max(1, full_parts + (1 if remainder else 0))


def plan_parts(
  total_size: int,
  min_part_size: int = MIN_PART_SIZE,
  max_parts: int = MAX_PARTS,
) -> PartPlan:
  """
  Partition ``total_size`` bytes into numbered parts.

  A zero-byte input yields a single zero-length part.

  Args:
      total_size: Size of the file in bytes
      min_part_size: Size of every part but the last
      max_parts: Upper bound on the number of parts

  Returns:
      Tuple of PartSpec ordered by part number, starting at 1

  Raises:
      InvalidInputError: If total_size is negative or min_part_size is not positive
      TooManyPartsError: If the plan would exceed max_parts
  """
  total_size = _require_int("total_size", total_size)
  min_part_size = _require_int("min_part_size", min_part_size)

  if total_size < 0:
    raise InvalidInputError(
      f"total_size must be non-negative, got {total_size}", total_size=total_size
    )
  if min_part_size <= 0:
    raise InvalidInputError(
      f"min_part_size must be positive, got {min_part_size}",
      min_part_size=min_part_size,
    )

  if total_size == 0:
    return (PartSpec(part_number=1, byte_offset=0, byte_length=0),)

  part_count = count_parts(total_size, min_part_size)
  if part_count > max_parts:
    raise TooManyPartsError(total_size, part_count, max_parts)

  full_parts, remainder = divmod(total_size, min_part_size)
  parts = [
    PartSpec(
      part_number=index + 1,
      byte_offset=index * min_part_size,
      byte_length=min_part_size,
    )
    for index in range(full_parts)
  ]
  if remainder:
    parts.append(
      PartSpec(
        part_number=full_parts + 1,
        byte_offset=full_parts * min_part_size,
        byte_length=remainder,
      )
    )

  return tuple(parts)
