from isomarc.constants import FT
from isomarc.errors import FieldTooLongError, OffsetOverflowError

MAX_FIELD_LENGTH = 9999
MAX_FIELD_START = 99999


class DirectoryEntry:
    def __init__(self, tag: str, length: int, start: int) -> None:
        self.tag = tag
        self.length = length
        self.start = start

    def marshal(self) -> str:
        if self.length > MAX_FIELD_LENGTH:
            raise FieldTooLongError(f"field {self.tag} is {self.length} long, the limit is {MAX_FIELD_LENGTH}")
        if self.start > MAX_FIELD_START:
            raise OffsetOverflowError(f"field {self.tag} starts at {self.start}, the limit is {MAX_FIELD_START}")
        return f"{self.tag}{self.length:04d}{self.start:05d}"

    def __repr__(self) -> str:
        return f"DirectoryEntry({self.tag!r}, {self.length}, {self.start})"


class Directory:
    """Field locations of a record, in the order the fields are written."""

    def __init__(self) -> None:
        self.entries: list[DirectoryEntry] = []
        self._next_start = 0

    def add(self, tag: str, length: int) -> DirectoryEntry:
        entry = DirectoryEntry(tag, length, self._next_start)
        self.entries.append(entry)
        self._next_start += length
        return entry

    def __len__(self) -> int:
        return len(self.entries)

    def marshal(self, terminated: bool = True) -> str:
        res = ''.join(entry.marshal() for entry in self.entries)
        return res + FT if terminated else res
