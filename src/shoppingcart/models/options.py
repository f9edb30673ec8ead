import json
from typing import Any, Dict, Iterator, Mapping, Optional


class CartItemOptions(Mapping):
    """
    Immutable option set attached to a cart item (size, color, ...)

    Construction order does not matter: two option sets with the same
    pairs serialize identically and compare equal. Options are also
    readable as attributes, returning None for unknown names:

        options = CartItemOptions({"size": "XL"})
        options.size   -> "XL"
        options.color  -> None
    """

    __slots__ = ("_data",)

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        if options is None:
            options = {}
        if not isinstance(options, Mapping):
            raise TypeError("Options must be a mapping of option name to value")
        object.__setattr__(self, "_data", dict(options))

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") or name == "_data":
            raise AttributeError(name)
        return self._data.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("CartItemOptions is immutable")

    def __copy__(self) -> "CartItemOptions":
        return self

    def __deepcopy__(self, memo: Dict[int, Any]) -> "CartItemOptions":
        return self

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CartItemOptions):
            return self.canonical() == other.canonical()
        if isinstance(other, Mapping):
            return self.canonical() == CartItemOptions(other).canonical()
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.canonical())

    def __repr__(self) -> str:
        return f"<CartItemOptions {self.canonical()}>"

    def sorted(self) -> Dict[str, Any]:
        """Options as a plain dict ordered by option name"""
        return {key: self._data[key] for key in sorted(self._data)}

    def canonical(self) -> str:
        """Sorted-key serialization used for rowId hashing and equality"""
        return json.dumps(self.sorted(), sort_keys=True, separators=(",", ":"), default=str)

    def to_dict(self) -> Dict[str, Any]:
        """Options in insertion order, for snapshots and responses"""
        return dict(self._data)
