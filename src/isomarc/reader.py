import io
import json
import logging
import os

import yaml

from isomarc import tag as tags
from isomarc.constants import DIRECTORY_ENTRY_LENGTH, FT, LEADER_LENGTH, RT, US, WIRE_ENCODING
from isomarc.converter import CharacterConverter
from isomarc.errors import MalformedLeaderError, MarcError, MarcReaderError
from isomarc.handler import ErrorCollector, ErrorHandler, MarcHandler, RecordBuilder
from isomarc.marc import Leader

logger = logging.getLogger(__name__)


class MarcReader:
    """Push parser for ISO 2709 streams.

    Structural events go to ``handler``; problems found along the way go to
    ``error_handler`` as warnings, errors or fatal errors and parsing
    continues wherever the damage allows it:

    * fatal: the leader cannot be parsed or reports a zero base address or
      record length. Nothing after it is read.
    * error: broken directory, missing terminators, stray characters after
      a field terminator, record length mismatch. The record is still
      delivered, except for an invalid directory length which stops the
      stream.
    * warning: a field too short to hold data, a missing delimiter after
      the indicators, a field the handler rejects. Only that field is lost.

    Without an error handler diagnostics are dropped. Positions are
    absolute unit offsets in the stream.

    An instance keeps counters for the stream being parsed and must not be
    shared between threads or used reentrantly.
    """

    def __init__(self, handler: MarcHandler | None = None, error_handler: ErrorHandler | None = None) -> None:
        self.handler = handler
        self.error_handler = error_handler
        self.file_name: str | None = None
        self.control_number: str | None = None
        self._input = None
        self._file_counter = 0
        self._record_counter = 0

    @property
    def position(self) -> int:
        return self._file_counter + self._record_counter

    def parse(self, source, file_name: str | None = None) -> None:
        """Parses a path, a bytes object or a readable stream.

        Streams may be binary or text; text streams must already hold one
        character per byte. Paths are opened and closed here, streams are
        left open.
        """
        if self.handler is None:
            raise MarcError("no MarcHandler registered")

        if isinstance(source, (str, os.PathLike)):
            with open(source, "rb") as f:
                self._parse(f, file_name if file_name is not None else os.fspath(source))
            return

        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))

        self._parse(source, file_name)

    def _parse(self, stream, file_name: str | None) -> None:
        self._input = stream
        self.file_name = file_name
        self.control_number = None
        self._file_counter = 0
        self._record_counter = 0

        self.handler.start_collection()
        try:
            while self._parse_record():
                pass
        finally:
            self._input = None
        self.handler.end_collection()

    def _read(self, n: int) -> str:
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._input.read(remaining)
            if not chunk:
                break
            if isinstance(chunk, (bytes, bytearray)):
                chunk = chunk.decode(WIRE_ENCODING)
            chunks.append(chunk)
            remaining -= len(chunk)

        data = ''.join(chunks)
        self._record_counter += len(data)
        return data

    def _parse_record(self) -> bool:
        self._file_counter += self._record_counter
        self._record_counter = 0

        ldr = self._read(LEADER_LENGTH)
        if len(ldr) < LEADER_LENGTH:
            if ldr:
                logger.debug("ignoring %d trailing characters at %d", len(ldr), self._file_counter)
            return False

        try:
            leader = Leader(ldr)
        except MalformedLeaderError:
            self._report_fatal_error("Unable to parse leader", self._file_counter)
            logger.debug("stopped at unparsable leader %r", ldr)
            return False

        if leader.base_address_of_data == 0 or leader.record_length == 0:
            self._report_fatal_error("Invalid MARC ISO 2709 file", self._file_counter)
            logger.debug("stopped at leader %r", ldr)
            return False

        logger.debug("record at %d, leader %r", self._file_counter, ldr)
        self.handler.start_record(leader)

        directory_length = leader.base_address_of_data - (LEADER_LENGTH + 1)
        if directory_length < 0 or directory_length % DIRECTORY_ENTRY_LENGTH != 0:
            self._report_error("Invalid directory length")
            logger.debug("stopped at directory length %d", directory_length)
            return False

        entries = []
        for _ in range(directory_length // DIRECTORY_ENTRY_LENGTH):
            entry = self._read(DIRECTORY_ENTRY_LENGTH)
            length_str = entry[3:7]
            if length_str.isascii() and length_str.isdigit():
                length = int(length_str)
            else:
                self._report_error("Invalid directory entry")
                length = 0
            entries.append((entry[0:3], length))

        start = self.position
        if self._read(1) != FT:
            self._report_error("Directory not terminated", start)

        for tag, length in entries:
            start = self.position
            field = self._read(length)
            self._check_field_terminator(field, start)

            if not tags.is_valid(tag):
                self._report_error(f"Invalid tag {tag!r}", start)
            elif tags.is_control_field(tag):
                self._parse_control_field(tag, field, start)
            else:
                self._parse_data_field(tag, field, start)

        start = self.position
        if self._read(1) != RT:
            self._report_error("Record not terminated", start)

        if self._record_counter != leader.record_length:
            self._report_error("Record length not equal to characters read")

        self.handler.end_record()
        return True

    def _check_field_terminator(self, field: str, start: int) -> None:
        if self.error_handler is None:
            return
        pos = field.rfind(FT)
        if pos < 0:
            self._report_error("Field not terminated", start)
        elif field[pos + 1:].replace('\x00', ''):
            self._report_error("Characters detected in field after FT", start)

    def _parse_control_field(self, tag: str, field: str, start: int) -> None:
        if len(field) < 2:
            self._report_warning(f"Control field contains no data elements for tag {tag}", start)
            return

        data = field.replace(FT, '')
        if tags.is_control_number_field(tag):
            self.control_number = data

        try:
            self.handler.control_field(tag, data)
        except MarcError as e:
            self._report_warning(f"Control field is not valid: {tag} - {e}", start)

    def _parse_data_field(self, tag: str, field: str, start: int) -> None:
        if len(field) < 4:
            self._report_warning(f"Data field contains no data elements for tag {tag}", start)
            return

        try:
            self.handler.start_data_field(tag, field[0], field[1])
        except MarcError as e:
            self._report_warning(f"Data field is not valid: {tag} - {e}", start)
            return

        if field[2] != US:
            self._report_warning("Expected a data element identifier", start)

        code = None
        data = []
        i = 2
        while i < len(field):
            c = field[i]
            if c == US:
                self._flush_subfield(tag, code, data, start)
                code = None
                data = []
                if i + 1 < len(field) and field[i + 1] != FT:
                    code = field[i + 1]
                    i += 1
            elif c == FT:
                break
            elif code is not None:
                data.append(c)
            i += 1
        self._flush_subfield(tag, code, data, start)

        self.handler.end_data_field(tag)

    def _flush_subfield(self, tag: str, code: str | None, data: list[str], start: int) -> None:
        if code is None:
            return
        try:
            self.handler.subfield(code, ''.join(data))
        except MarcError as e:
            self._report_warning(f"Subfield is not valid: {tag} ${code} - {e}", start)

    def _diagnostic(self, message: str, position: int | None) -> MarcReaderError:
        return MarcReaderError(message, self.position if position is None else position, self.control_number, self.file_name)

    def _report_warning(self, message: str, position: int | None = None) -> None:
        if self.error_handler is not None:
            self.error_handler.warning(self._diagnostic(message, position))

    def _report_error(self, message: str, position: int | None = None) -> None:
        if self.error_handler is not None:
            self.error_handler.error(self._diagnostic(message, position))

    def _report_fatal_error(self, message: str, position: int | None = None) -> None:
        if self.error_handler is not None:
            self.error_handler.fatal_error(self._diagnostic(message, position))


class MarcStreamReader:
    """Iterates over the records of an ISO 2709 stream.

    Diagnostics go to ``error_handler``, or are kept in ``errors`` when no
    handler is given.
    """

    def __init__(self, f, force_utf8_encoding=False, error_handler: ErrorHandler | None = None, converter: CharacterConverter | None = None) -> None:
        self.__f = f
        self.force_utf8_encoding = force_utf8_encoding
        self.converter = converter
        self.errors = ErrorCollector() if error_handler is None else error_handler

    def __iter__(self):
        builder = RecordBuilder(converter=self.converter, force_utf8_encoding=self.force_utf8_encoding)
        MarcReader(builder, self.errors).parse(self.__f)
        yield from builder.records


class MarcJsonReader:
    """Reads the JSON layouts written by ``MarcJsonWriter``.

    Layout 1 is a list of single-key field objects; layout 2 maps each tag
    to the list of its fields. Both are accepted.
    """

    def __init__(self, f) -> None:
        self.json = self._load(f)
        if self.json is None:
            self.json = []
        elif not isinstance(self.json, list):
            self.json = [self.json]

    def _load(self, f):
        return json.load(f)

    def __parse_data_field(self, handler: MarcHandler, tag, field_obj) -> None:
        handler.start_data_field(tag, field_obj['ind1'], field_obj['ind2'])

        subfields = field_obj['subfields']
        if isinstance(subfields, list):
            for subfield_obj in subfields:
                for code, data in subfield_obj.items():
                    handler.subfield(code, data)
        else:
            for code in subfields:
                for data in subfields[code]:
                    handler.subfield(code, data)

        handler.end_data_field(tag)

    def __parse_field(self, handler: MarcHandler, tag, field_obj) -> None:
        tag = str(tag)
        if tags.is_control_field(tag):
            handler.control_field(tag, field_obj)
        else:
            self.__parse_data_field(handler, tag, field_obj)

    def __parse_record(self, handler: MarcHandler, record_obj) -> None:
        handler.start_record(Leader(record_obj['leader']))

        if isinstance(record_obj['fields'], list):
            for field_obj in record_obj['fields']:
                for tag, value in field_obj.items():
                    self.__parse_field(handler, tag, value)
        else:
            for tag, field_objs in record_obj['fields'].items():
                for field_obj in field_objs:
                    self.__parse_field(handler, tag, field_obj)

        handler.end_record()

    def parse(self, handler: MarcHandler) -> None:
        handler.start_collection()
        for record_obj in self.json:
            self.__parse_record(handler, record_obj)
        handler.end_collection()

    def __iter__(self):
        builder = RecordBuilder()
        self.parse(builder)
        yield from builder.records


class MarcYamlReader(MarcJsonReader):
    def _load(self, f):
        return yaml.safe_load(f)
