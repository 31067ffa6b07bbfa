from typing import Dict
from typing import Generic
from typing import Iterator
from typing import Optional
from typing import TypeVar

TKey = TypeVar('TKey')
TValue = TypeVar('TValue')


class FDict(Generic[TKey, TValue]):
    """read-only mapping which hashes by identity

    this lets mapping-valued fields live inside the (cached) theme tuples
    """

    def __init__(self, dct: Dict[TKey, TValue]) -> None:
        self._dct = dct

    def __getitem__(self, k: TKey) -> TValue:
        return self._dct[k]

    def __contains__(self, k: object) -> bool:
        return k in self._dct

    def __iter__(self) -> Iterator[TKey]:
        return iter(self._dct)

    def __len__(self) -> int:
        return len(self._dct)

    def get(
            self,
            k: TKey,
            default: Optional[TValue] = None,
    ) -> Optional[TValue]:
        return self._dct.get(k, default)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._dct})'
