import unittest

from isomarc.converter import CharacterConverter, Utf8Converter
from isomarc.errors import IllegalDataElementError, MarcReaderError
from isomarc.handler import ERROR, FATAL, WARNING, ErrorCollector, LoggingErrorHandler, RecordBuilder
from isomarc.marc import Leader


class UpperConverter(CharacterConverter):
    def convert(self, data: str) -> str:
        return data.upper()


class TestErrorCollector(unittest.TestCase):
    def test_severities(self):
        errors = ErrorCollector()
        errors.warning(MarcReaderError("w", 1))
        errors.error(MarcReaderError("e", 2, "ocm1"))
        errors.fatal_error(MarcReaderError("f", 3))

        self.assertEqual(len(errors), 3)
        self.assertEqual([sev for sev, _ in errors.diagnostics], [WARNING, ERROR, FATAL])
        self.assertEqual(errors.errors[0].control_number, "ocm1")
        self.assertEqual(errors.fatal_errors[0].position, 3)

    def test_logging(self):
        errors = LoggingErrorHandler()
        with self.assertLogs("isomarc.handler", level="WARNING") as logs:
            errors.warning(MarcReaderError("Expected a data element identifier", 60, "ocm1"))
            errors.fatal_error(MarcReaderError("Invalid MARC ISO 2709 file", 0, file_name="x.mrc"))

        self.assertEqual(logs.records[0].levelname, "WARNING")
        self.assertEqual(logs.records[1].levelname, "CRITICAL")
        self.assertIn("position 60, control number ocm1", logs.output[0])
        self.assertIn("file x.mrc", logs.output[1])
        self.assertEqual(len(errors.warnings), 1)


class TestRecordBuilder(unittest.TestCase):
    def build(self, builder, leader="00000cam  2200000 a 4500"):
        builder.start_collection()
        builder.start_record(Leader(leader))
        builder.control_field("001", "abc")
        builder.start_data_field("245", "1", "0")
        builder.subfield("a", "Caf\xc3\xa9")
        builder.end_data_field("245")
        builder.end_record()
        builder.end_collection()
        return builder.records[0]

    def test_build(self):
        record = self.build(RecordBuilder())
        self.assertEqual(record.control_number, "abc")
        self.assertEqual(record.get_first_data_field("245")["a"][0].data, "Caf\xc3\xa9")

    def test_utf8_leader(self):
        record = self.build(RecordBuilder(), leader="00000cam a2200000 a 4500")
        self.assertEqual(record.get_first_data_field("245")["a"][0].data, "Café")

    def test_force_utf8(self):
        record = self.build(RecordBuilder(force_utf8_encoding=True))
        self.assertEqual(record.get_first_data_field("245")["a"][0].data, "Café")

    def test_converter(self):
        record = self.build(RecordBuilder(converter=UpperConverter()), leader="00000cam a2200000 a 4500")
        self.assertEqual(record.control_number, "ABC")

    def test_conversion_failure(self):
        builder = RecordBuilder(force_utf8_encoding=True)
        builder.start_collection()
        builder.start_record(Leader())
        with self.assertRaises(IllegalDataElementError):
            builder.control_field("001", "\xe9")


class TestUtf8Converter(unittest.TestCase):
    def test_convert(self):
        self.assertEqual(Utf8Converter().convert("Caf\xc3\xa9"), "Café")

    def test_errors(self):
        with self.assertRaises(UnicodeDecodeError):
            Utf8Converter().convert("\xe9")
        self.assertEqual(Utf8Converter(errors="replace").convert("\xe9"), "�")


if __name__ == '__main__':
    unittest.main()
