import re

from isomarc import tag as tags
from isomarc.constants import FT, RT, US, BLANK, LEADER_LENGTH, WIRE_ENCODING
from isomarc.directory import Directory
from isomarc.errors import (
    EncodingError,
    IllegalAddError,
    IllegalDataElementError,
    IllegalTagError,
    IncompleteRecordError,
    MalformedLeaderError,
    OffsetOverflowError,
)


def check_data_element(value: str) -> str:
    if any(c in value for c in (RT, FT, US)):
        raise IllegalDataElementError(f"data element contains a structural character: {value!r}")
    return value


def check_indicator(value: str) -> str:
    if not isinstance(value, str) or len(value) != 1 or not (value.isalnum() or value == BLANK):
        raise IllegalDataElementError(f"invalid indicator: {value!r}")
    return value


def encoded_length(text: str, encoding: str | None) -> int:
    if not encoding:
        return len(text)
    try:
        return len(text.encode(encoding))
    except LookupError as e:
        raise EncodingError(f"unknown encoding {encoding!r}") from e
    except UnicodeEncodeError as e:
        raise EncodingError(f"{encoding} cannot represent {text!r}") from e


class VariableField:
    def __init__(self, tag: str) -> None:
        self.tag = tags.check(tag)

    def marshal(self) -> str:
        raise NotImplementedError

    def find(self, pattern) -> bool:
        raise NotImplementedError

    def length(self, encoding: str | None = None) -> int:
        return encoded_length(self.marshal(), encoding)


class ControlField(VariableField):
    def __init__(self, tag: str, data: str) -> None:
        super().__init__(tag)
        if not tags.is_control_field(tag):
            raise IllegalTagError(tag, "not a control field tag")
        self.data = check_data_element(data)

    def marshal(self) -> str:
        return self.data + FT

    def find(self, pattern) -> bool:
        return re.search(pattern, self.data) is not None

    def __eq__(self, other) -> bool:
        if not isinstance(other, ControlField):
            return NotImplemented
        return self.tag == other.tag and self.data == other.data

    def copy(self) -> "ControlField":
        return ControlField(self.tag, self.data)

    def __repr__(self) -> str:
        return f"ControlField({self.tag!r}, {self.data!r})"

    def __str__(self) -> str:
        return f"{self.tag} {self.data}"


class SubField:
    def __init__(self, code: str, data: str, link_code: str | None = None) -> None:
        if not isinstance(code, str) or len(code) != 1 or code in (RT, FT, US):
            raise IllegalDataElementError(f"invalid subfield code: {code!r}")
        self.code = code
        self.data = check_data_element(data)
        self.link_code = link_code

    def marshal(self) -> str:
        return f"{US}{self.code}{self.data}"

    def __eq__(self, other) -> bool:
        if not isinstance(other, SubField):
            return NotImplemented
        return (self.code, self.data, self.link_code) == (other.code, other.data, other.link_code)

    def copy(self) -> "SubField":
        return SubField(self.code, self.data, self.link_code)

    def __repr__(self) -> str:
        return f"SubField({self.code!r}, {self.data!r})"

    def __str__(self) -> str:
        return f"${self.code}{self.data}"


class DataField(VariableField):
    def __init__(self, tag: str, ind1: str = BLANK, ind2: str = BLANK, subfields: list[SubField] | None = None) -> None:
        super().__init__(tag)
        if not tags.is_data_field(tag):
            raise IllegalTagError(tag, "not a data field tag")
        self.ind1 = check_indicator(ind1)
        self.ind2 = check_indicator(ind2)
        self.subfields: list[SubField] = [] if subfields is None else list(subfields)

    def add(self, subfield: SubField) -> None:
        self.subfields.append(subfield)

    def get_subfield(self, code: str) -> SubField | None:
        for subfield in self.subfields:
            if subfield.code == code:
                return subfield
        return None

    def __getitem__(self, key) -> list[SubField] | None:
        res = [subfield for subfield in self.subfields if subfield.code == key]
        return res if len(res) > 0 else None

    def __contains__(self, key) -> bool:
        return self.get_subfield(key) is not None

    def marshal(self) -> str:
        return self.ind1 + self.ind2 + ''.join(subfield.marshal() for subfield in self.subfields) + FT

    def find(self, pattern) -> bool:
        return any(re.search(pattern, subfield.data) is not None for subfield in self.subfields)

    def __eq__(self, other) -> bool:
        if not isinstance(other, DataField):
            return NotImplemented
        return (self.tag, self.ind1, self.ind2, self.subfields) == (other.tag, other.ind1, other.ind2, other.subfields)

    def copy(self) -> "DataField":
        return DataField(self.tag, self.ind1, self.ind2, [subfield.copy() for subfield in self.subfields])

    def __repr__(self) -> str:
        return f"DataField({self.tag!r}, {self.ind1!r}, {self.ind2!r}, {self.subfields!r})"

    def __str__(self) -> str:
        res = f"{self.tag} {self.ind1}{self.ind2}"
        for subfield in self.subfields:
            res += str(subfield)
        return res


def _to_int(value: str, default: int) -> int:
    return int(value) if value.isascii() and value.isdigit() else default


class Leader:
    """The 24 character record label.

    ``record_length`` and ``base_address_of_data`` are overwritten by
    ``Record.marshal``; treat them as outputs when building records.
    """

    def __init__(self, leader_str: str | None = None) -> None:
        self.record_length = 0
        self.record_status = BLANK
        self.type_of_record = BLANK
        self.impl_defined1 = BLANK * 2
        self.char_coding_scheme = BLANK
        self.indicator_count = 2
        self.subfield_code_length = 2
        self.base_address_of_data = 0
        self.impl_defined2 = BLANK * 3
        self.entry_map = "4500"
        if leader_str is not None:
            self.unmarshal(leader_str)

    def __getitem__(self, key):
        try:
            idx = int(key)
        except (TypeError, ValueError):
            return None
        marshal_str = self.marshal()
        return marshal_str[idx] if 0 <= idx < len(marshal_str) else None

    def marshal(self) -> str:
        return f"{self.record_length:05d}{self.record_status}{self.type_of_record}{self.impl_defined1}{self.char_coding_scheme}{self.indicator_count}{self.subfield_code_length}{self.base_address_of_data:05d}{self.impl_defined2}{self.entry_map}"

    def unmarshal(self, leader_str: str) -> None:
        if leader_str is None or len(leader_str) < LEADER_LENGTH:
            raise MalformedLeaderError(f"leader must be {LEADER_LENGTH} characters: {leader_str!r}")

        try:
            check_data_element(leader_str[:LEADER_LENGTH])
        except IllegalDataElementError as e:
            raise MalformedLeaderError(f"unable to parse leader: {leader_str!r}") from e

        self.record_length = _to_int(leader_str[0:5], 0)
        self.record_status = leader_str[5]
        self.type_of_record = leader_str[6]
        self.impl_defined1 = leader_str[7:9]
        self.char_coding_scheme = leader_str[9]
        self.indicator_count = _to_int(leader_str[10], 2)
        self.subfield_code_length = _to_int(leader_str[11], 2)
        self.base_address_of_data = _to_int(leader_str[12:17], 0)
        self.impl_defined2 = leader_str[17:20]
        self.entry_map = leader_str[20:24]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Leader):
            return NotImplemented
        return self.marshal() == other.marshal()

    def copy(self) -> "Leader":
        return Leader(self.marshal())

    def __repr__(self) -> str:
        return f"Leader({self.marshal()!r})"

    def __str__(self) -> str:
        return f"=LDR {self.marshal()}"


class Record:
    def __init__(self, leader: Leader | str | None = None) -> None:
        self.leader = leader if leader is None or isinstance(leader, Leader) else Leader(leader_str=leader)
        self.control_fields: list[ControlField] = []
        self.data_fields: list[DataField] = []

    def add(self, *fields: VariableField) -> None:
        for field in fields:
            if isinstance(field, ControlField):
                if tags.is_control_number_field(field.tag):
                    if self.has_control_number_field():
                        raise IllegalAddError("control number field already exists")
                    self.control_fields.insert(0, field)
                else:
                    self.control_fields.append(field)
            elif isinstance(field, DataField):
                self.data_fields.append(field)
            else:
                raise IllegalAddError(f"cannot add {type(field).__name__} to a record")

    def copy(self) -> "Record":
        """Returns a deep copy; marshalling the copy leaves this record's leader alone."""
        record = Record(None if self.leader is None else self.leader.copy())
        record.control_fields = [field.copy() for field in self.control_fields]
        record.data_fields = [field.copy() for field in self.data_fields]
        return record

    def remove(self, field: VariableField) -> None:
        if isinstance(field, ControlField):
            self.control_fields.remove(field)
        else:
            self.data_fields.remove(field)

    def has_control_number_field(self) -> bool:
        return len(self.control_fields) > 0 and self.control_fields[0].tag == tags.CONTROL_NUMBER_TAG

    @property
    def control_number(self) -> str | None:
        return self.control_fields[0].data if self.has_control_number_field() else None

    @property
    def variable_fields(self) -> list[VariableField]:
        return [*self.control_fields, *self.data_fields]

    def get_control_fields(self, sorted: bool = False) -> list[ControlField]:
        return _sorted(self.control_fields) if sorted else list(self.control_fields)

    def get_data_fields(self, sorted: bool = False) -> list[DataField]:
        return _sorted(self.data_fields) if sorted else list(self.data_fields)

    def get_control_field(self, tag: str) -> ControlField | None:
        for field in self.control_fields:
            if field.tag == tag:
                return field
        return None

    def get_first_data_field(self, tag: str) -> DataField | None:
        for field in self.data_fields:
            if field.tag == tag:
                return field
        return None

    def get_fields(self, *keys: str) -> list[VariableField]:
        return [field for field in self.variable_fields if not keys or field.tag in keys]

    def find(self, pattern, tags: list[str] | None = None) -> list[VariableField]:
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        return [field for field in self.get_fields(*(tags or ())) if field.find(pattern)]

    def __getitem__(self, key) -> list[VariableField] | None:
        res = self.get_fields(key)
        return res if len(res) > 0 else None

    def __contains__(self, key) -> bool:
        return any(field.tag == key for field in self.variable_fields)

    def payload_encoding(self, encoding: str | None = None) -> str | None:
        if encoding:
            return encoding
        if self.leader is not None and self.leader.char_coding_scheme == 'a':
            return "utf-8"
        return None

    def marshal(self, encoding: str | None = None) -> str:
        """Serializes the record to the exchange format.

        With ``encoding`` the directory lengths count bytes in that
        encoding instead of characters. Without it, records whose leader
        declares UTF-8 (coding scheme ``a``) are counted in UTF-8 bytes.
        The leader's base address and record length are recomputed and
        written back into ``self.leader``.
        """
        if self.leader is None:
            raise IncompleteRecordError("record contains no leader")
        if not self.has_control_number_field():
            raise IncompleteRecordError("record contains no control number field (tag 001)")

        encoding = self.payload_encoding(encoding)

        directory = Directory()
        data = []
        data_length = 0

        for field in self.variable_fields:
            text = field.marshal()
            length = encoded_length(text, encoding)
            directory.add(field.tag, length)
            data.append(text)
            data_length += length

        directory_str = directory.marshal()
        base_address = LEADER_LENGTH + len(directory_str)
        record_length = base_address + data_length + 1
        if record_length > 99999:
            raise OffsetOverflowError(f"record length {record_length} does not fit in the leader")

        self.leader.base_address_of_data = base_address
        self.leader.record_length = record_length

        return self.leader.marshal() + directory_str + ''.join(data) + RT

    def as_marc(self, encoding: str | None = None) -> bytes:
        text = self.marshal(encoding)
        wire_encoding = self.payload_encoding(encoding) or WIRE_ENCODING
        try:
            return text.encode(wire_encoding)
        except UnicodeEncodeError as e:
            raise EncodingError(f"{wire_encoding} cannot represent the record") from e

    def __str__(self) -> str:
        res = f"{self.leader}"
        for field in self.control_fields:
            res += f"\n={field}"
        for field in self.data_fields:
            res += f"\n={field}"
        return res


def _sorted(fields):
    return sorted(fields, key=lambda field: field.tag)
