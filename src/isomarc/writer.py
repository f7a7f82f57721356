import codecs
import json
import logging

import yaml

from isomarc.converter import CharacterConverter
from isomarc.errors import MarcError
from isomarc.handler import MarcHandler, RecordBuilder
from isomarc.marc import Leader, Record

logger = logging.getLogger(__name__)


class MarcJsonWriter:
    """Writes records as JSON.

    Records are buffered by ``write`` and dumped as one array by ``flush``.
    ``layout_format`` 1 keeps fields in record order as single-key objects;
    any other value groups fields by tag and subfields by code.
    """

    def __init__(self, f, layout_format: int = 1, ignored_tags: list[str] | None = None, indent: int | None = None, sort_tags=False):
        self.f = f
        self.format = layout_format
        self.ignored_tags = [] if ignored_tags is None else ignored_tags
        self.indent = indent
        self.sort_tags = sort_tags
        self._pending: list[dict] = []

    def _write_format1(self, record: Record):
        obj = {
            'leader': record.leader.marshal(),
            'fields': []
        }

        for field in record.get_control_fields(sorted=self.sort_tags):
            if field.tag in self.ignored_tags:
                continue

            obj['fields'].append({
                field.tag: field.data
            })

        for field in record.get_data_fields(sorted=self.sort_tags):
            if field.tag in self.ignored_tags:
                continue

            field_obj = {'ind1': field.ind1, 'ind2': field.ind2, 'subfields': []}

            for subfield in field.subfields:
                field_obj['subfields'].append({
                    subfield.code: subfield.data
                })

            obj['fields'].append({
                field.tag: field_obj
            })

        return obj

    def _write_format2(self, record: Record):
        obj = {
            'leader': record.leader.marshal(),
            'fields': {}
        }

        for field in record.get_control_fields(sorted=self.sort_tags):
            if field.tag in self.ignored_tags:
                continue

            obj['fields'].setdefault(field.tag, []).append(field.data)

        for field in record.get_data_fields(sorted=self.sort_tags):
            if field.tag in self.ignored_tags:
                continue

            field_obj = {'ind1': field.ind1, 'ind2': field.ind2, 'subfields': {}}

            for subfield in field.subfields:
                field_obj['subfields'].setdefault(subfield.code, []).append(subfield.data)

            obj['fields'].setdefault(field.tag, []).append(field_obj)

        return obj

    def _dump(self, obj):
        json.dump(obj, self.f, indent=self.indent)

    def write(self, record: Record):
        if self.format == 1:
            self._pending.append(self._write_format1(record))
        else:
            self._pending.append(self._write_format2(record))

    def write_all(self, *records):
        for record in records:
            self.write(record)

    def flush(self):
        pending, self._pending = self._pending, []
        self._dump(pending)


class MarcYamlWriter(MarcJsonWriter):
    def _dump(self, obj):
        yaml.safe_dump(obj, self.f, indent=self.indent, sort_keys=False, allow_unicode=True)


class MarcStreamWriter:
    """Writes records in the ISO 2709 exchange format to a binary stream.

    With ``encoding`` the payloads are encoded with it and the directory
    counts bytes; without it each record is written in UTF-8 when its
    leader says so and in ISO-8859-1 otherwise. Filtered or re-coded
    records are written from a copy, the caller's record is left as is.
    """

    def __init__(self, f, encoding: str | None = None, ignored_tags: list[str] | None = None) -> None:
        self.f = f
        self.encoding = encoding
        self.ignored_tags = [] if ignored_tags is None else ignored_tags
        self._utf8 = encoding is not None and codecs.lookup(encoding).name == "utf-8"

    def write(self, record: Record):
        if self.ignored_tags:
            filtered = Record(None if record.leader is None else record.leader.copy())
            filtered.add(*(field for field in record.variable_fields if field.tag not in self.ignored_tags))
            record = filtered
        elif self._utf8:
            record = record.copy()

        if self._utf8 and record.leader is not None:
            record.leader.char_coding_scheme = "a"

        self.f.write(record.as_marc(self.encoding))

    def write_all(self, *records):
        for record in records:
            self.write(record)

    def flush(self):
        self.f.flush()


class MarcWriter(RecordBuilder):
    """Event handler that rebuilds each record and passes it to ``writer``.

    A record the writer rejects is logged and skipped. ``writer.flush()`` is
    called at the end of the collection when the writer has one.
    """

    def __init__(self, writer, converter: CharacterConverter | None = None, force_utf8_encoding: bool = False) -> None:
        super().__init__(converter=converter, force_utf8_encoding=force_utf8_encoding)
        self.writer = writer
        self.written = 0

    def handle_record(self, record: Record) -> None:
        try:
            self.writer.write(record)
        except MarcError as e:
            logger.error("could not write record %s: %s", record.control_number, e)
            return
        self.written += 1

    def end_collection(self) -> None:
        flush = getattr(self.writer, "flush", None)
        if flush is not None:
            flush()


class TaggedWriter(MarcHandler):
    """Writes a plain listing of the event stream to a text stream."""

    def __init__(self, out, converter: CharacterConverter | None = None) -> None:
        self.out = out
        self.converter = converter

    def _convert(self, data: str) -> str:
        return data if self.converter is None else self.converter.convert(data)

    def start_record(self, leader: Leader) -> None:
        self.out.write(f"Leader {leader.marshal()}\n")

    def control_field(self, tag: str, data: str) -> None:
        self.out.write(f"{tag} {self._convert(data)}\n")

    def start_data_field(self, tag: str, ind1: str, ind2: str) -> None:
        self.out.write(f"{tag} {ind1}{ind2}")

    def subfield(self, code: str, data: str) -> None:
        self.out.write(f"${code}{self._convert(data)}")

    def end_data_field(self, tag: str) -> None:
        self.out.write("\n")

    def end_record(self) -> None:
        self.out.write("\n")

    def end_collection(self) -> None:
        self.out.flush()


def _write_to(writer, records: list[Record] | Record):
    if isinstance(records, Record):
        writer.write(records)
    else:
        writer.write_all(*records)
    writer.flush()


def write_marc_json_to_path(path: str, records: list[Record] | Record, encoding = "utf-8", writer_getter = None):
    with open(path, "w", encoding=encoding) as f:
        _write_to(writer_getter(f) if writer_getter is not None else MarcJsonWriter(f), records)


def write_marc_yaml_to_path(path: str, records: list[Record] | Record, encoding = "utf-8", writer_getter = None):
    with open(path, "w", encoding=encoding) as f:
        _write_to(writer_getter(f) if writer_getter is not None else MarcYamlWriter(f), records)


def write_marc_stream_to_path(path: str, records: list[Record] | Record, writer_getter = None):
    with open(path, "wb") as f:
        _write_to(writer_getter(f) if writer_getter is not None else MarcStreamWriter(f), records)
