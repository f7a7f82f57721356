import logging

from isomarc.converter import CharacterConverter, Utf8Converter
from isomarc.errors import IllegalDataElementError, MarcReaderError
from isomarc.marc import ControlField, DataField, Leader, Record, SubField

logger = logging.getLogger(__name__)

WARNING = "warning"
ERROR = "error"
FATAL = "fatal"


class MarcHandler:
    """Receives the structural events of a MARC collection.

    Every method is a no-op; subclasses override what they need.
    """

    def start_collection(self) -> None:
        pass

    def start_record(self, leader: Leader) -> None:
        pass

    def control_field(self, tag: str, data: str) -> None:
        pass

    def start_data_field(self, tag: str, ind1: str, ind2: str) -> None:
        pass

    def subfield(self, code: str, data: str) -> None:
        pass

    def end_data_field(self, tag: str) -> None:
        pass

    def end_record(self) -> None:
        pass

    def end_collection(self) -> None:
        pass


class ErrorHandler:
    def warning(self, error: MarcReaderError) -> None:
        pass

    def error(self, error: MarcReaderError) -> None:
        pass

    def fatal_error(self, error: MarcReaderError) -> None:
        pass


class ErrorCollector(ErrorHandler):
    def __init__(self) -> None:
        self.diagnostics: list[tuple[str, MarcReaderError]] = []

    def warning(self, error: MarcReaderError) -> None:
        self.diagnostics.append((WARNING, error))

    def error(self, error: MarcReaderError) -> None:
        self.diagnostics.append((ERROR, error))

    def fatal_error(self, error: MarcReaderError) -> None:
        self.diagnostics.append((FATAL, error))

    def of_severity(self, severity: str) -> list[MarcReaderError]:
        return [error for sev, error in self.diagnostics if sev == severity]

    @property
    def warnings(self) -> list[MarcReaderError]:
        return self.of_severity(WARNING)

    @property
    def errors(self) -> list[MarcReaderError]:
        return self.of_severity(ERROR)

    @property
    def fatal_errors(self) -> list[MarcReaderError]:
        return self.of_severity(FATAL)

    def __len__(self) -> int:
        return len(self.diagnostics)


class LoggingErrorHandler(ErrorCollector):
    def __init__(self, log: logging.Logger | None = None) -> None:
        super().__init__()
        self.log = log if log is not None else logger

    def warning(self, error: MarcReaderError) -> None:
        super().warning(error)
        self.log.warning("%s", error)

    def error(self, error: MarcReaderError) -> None:
        super().error(error)
        self.log.error("%s", error)

    def fatal_error(self, error: MarcReaderError) -> None:
        super().fatal_error(error)
        self.log.critical("%s", error)


class RecordBuilder(MarcHandler):
    """Accumulates events into ``Record`` objects.

    Payloads go through ``converter`` when one is given. Otherwise UTF-8
    is assumed for records whose leader says so (coding scheme ``a``) or
    for every record when ``force_utf8_encoding`` is set.
    """

    def __init__(self, converter: CharacterConverter | None = None, force_utf8_encoding: bool = False) -> None:
        self.converter = converter
        self.force_utf8_encoding = force_utf8_encoding
        self.records: list[Record] = []
        self._record: Record | None = None
        self._data_field: DataField | None = None
        self._record_converter: CharacterConverter | None = None

    def _convert(self, data: str) -> str:
        if self._record_converter is None:
            return data
        try:
            return self._record_converter.convert(data)
        except ValueError as e:
            raise IllegalDataElementError(f"cannot convert {data!r}: {e}") from e

    def start_collection(self) -> None:
        self.records = []

    def start_record(self, leader: Leader) -> None:
        self._record = Record(leader)
        if self.converter is not None:
            self._record_converter = self.converter
        elif self.force_utf8_encoding or leader.char_coding_scheme == 'a':
            self._record_converter = Utf8Converter()
        else:
            self._record_converter = None

    def control_field(self, tag: str, data: str) -> None:
        self._record.add(ControlField(tag, self._convert(data)))

    def start_data_field(self, tag: str, ind1: str, ind2: str) -> None:
        self._data_field = DataField(tag, ind1, ind2)

    def subfield(self, code: str, data: str) -> None:
        self._data_field.add(SubField(code, self._convert(data)))

    def end_data_field(self, tag: str) -> None:
        self._record.add(self._data_field)
        self._data_field = None

    def end_record(self) -> None:
        record, self._record = self._record, None
        self.handle_record(record)

    def handle_record(self, record: Record) -> None:
        self.records.append(record)
