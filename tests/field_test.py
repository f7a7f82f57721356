import re
import unittest

from isomarc.errors import IllegalDataElementError, IllegalTagError
from isomarc.marc import ControlField, DataField, SubField


class TestControlField(unittest.TestCase):
    def test_constructor(self):
        cf = ControlField("003", "test")
        self.assertEqual(cf.tag, "003")
        self.assertEqual(cf.data, "test")

    def test_equals(self):
        self.assertEqual(ControlField("003", "test"), ControlField("003", "test"))
        self.assertNotEqual(ControlField("003", "test"), ControlField("003", "uofiytyout"))

    def test_data_field_tag_rejected(self):
        with self.assertRaises(IllegalTagError):
            ControlField("010", "test")

    def test_invalid_tag_rejected(self):
        with self.assertRaises(IllegalTagError):
            ControlField("0001", "test")

    def test_structural_data_rejected(self):
        with self.assertRaises(IllegalDataElementError):
            ControlField("003", "te\x1est")

    def test_marshal(self):
        cf = ControlField("003", "test")
        self.assertEqual(cf.marshal(), "test\x1e")
        self.assertEqual(cf.length(), 5)
        self.assertEqual(ControlField("003", "tést").length("utf-8"), 6)

    def test_find(self):
        cf = ControlField("008", "850101s1985    nyu")
        self.assertTrue(cf.find(re.compile("nyu$")))
        self.assertFalse(cf.find("xxx"))


class TestSubField(unittest.TestCase):
    def test_equals(self):
        self.assertEqual(SubField("a", "test"), SubField("a", "test"))
        self.assertNotEqual(SubField("a", "test"), SubField("a", "piyoitfou"))
        self.assertNotEqual(SubField("a", "test"), SubField("a", "test", link_code="1"))

    def test_marshal(self):
        self.assertEqual(SubField("a", "test").marshal(), "\x1fatest")
        self.assertEqual(str(SubField("a", "test")), "$atest")

    def test_invalid_code(self):
        with self.assertRaises(IllegalDataElementError):
            SubField("ab", "test")
        with self.assertRaises(IllegalDataElementError):
            SubField("\x1e", "test")


class TestDataField(unittest.TestCase):
    def setUp(self):
        self.df = DataField("245", "1", "2")
        self.df.add(SubField("a", "test"))

    def test_constructor(self):
        df = DataField("245", "1", "2")
        self.assertEqual(df.tag, "245")
        self.assertEqual(df.ind1, "1")
        self.assertEqual(df.ind2, "2")
        self.assertEqual(df.subfields, [])
        self.assertEqual(DataField("500").ind1, " ")

    def test_control_field_tag_rejected(self):
        with self.assertRaises(IllegalTagError):
            DataField("009", "1", "2")

    def test_indicators(self):
        for ind in ("a", "Z", "0", " "):
            DataField("245", ind, ind)
        for ind in ("\x1f", "|", "", "12"):
            with self.assertRaises(IllegalDataElementError):
                DataField("245", ind, "0")

    def test_has_subfield(self):
        self.assertTrue("a" in self.df)
        self.assertFalse("x" in self.df)
        self.assertEqual(self.df.get_subfield("a"), SubField("a", "test"))
        self.assertIsNone(self.df.get_subfield("x"))

    def test_getitem(self):
        self.df.add(SubField("a", "again"))
        self.assertEqual([sf.data for sf in self.df["a"]], ["test", "again"])
        self.assertIsNone(self.df["b"])

    def test_length(self):
        self.assertEqual(self.df.length(), 9)

    def test_marshal(self):
        self.assertEqual(self.df.marshal(), "12\x1fatest\x1e")
        self.assertEqual(str(self.df), "245 12$atest")

    def test_find(self):
        self.assertTrue(self.df.find("es"))
        self.assertFalse(self.df.find("^es"))


if __name__ == '__main__':
    unittest.main()
