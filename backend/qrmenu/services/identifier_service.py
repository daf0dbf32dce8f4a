# Overview: Generation of the 36-character public identifiers used for all row linkage.

import uuid
from typing import Callable

IdFactory = Callable[[], str]


def new_unique_id() -> str:
    """Random UUID4 in canonical 36-character form."""
    return str(uuid.uuid4())


def allocate_ids(count: int, id_factory: IdFactory = new_unique_id) -> list[str]:
    """Pre-allocate a pool of ids for a batch insert."""
    return [id_factory() for _ in range(count)]
