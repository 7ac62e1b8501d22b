"""The fragment entity."""

from fragstore.model.fragment import Fragment, new_fragment_id

__all__ = ["Fragment", "new_fragment_id"]
