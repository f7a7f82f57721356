import unittest

from isomarc import tag
from isomarc.errors import IllegalTagError


class TestTag(unittest.TestCase):
    def test_is_valid(self):
        for i in range(1000):
            self.assertTrue(tag.is_valid(f"{i:03d}"))

        self.assertFalse(tag.is_valid("1234"))
        self.assertFalse(tag.is_valid("24"))
        self.assertFalse(tag.is_valid("FMT"))
        self.assertFalse(tag.is_valid(245))

    def test_check(self):
        self.assertEqual(tag.check("245"), "245")
        with self.assertRaises(IllegalTagError):
            tag.check("1234")

    def test_is_control_field(self):
        for i in range(1, 10):
            self.assertTrue(tag.is_control_field(f"{i:03d}"))
        for i in range(10, 1000):
            self.assertFalse(tag.is_control_field(f"{i:03d}"))
        self.assertFalse(tag.is_control_field("000"))

    def test_is_control_number_field(self):
        self.assertTrue(tag.is_control_number_field("001"))
        for i in range(2, 1000):
            self.assertFalse(tag.is_control_number_field(f"{i:03d}"))

    def test_is_data_field(self):
        for i in range(10, 1000):
            self.assertTrue(tag.is_data_field(f"{i:03d}"))
        for i in range(1, 10):
            self.assertFalse(tag.is_data_field(f"{i:03d}"))

    def test_invalid_tag_raises(self):
        with self.assertRaises(IllegalTagError):
            tag.is_control_field("1a")
        with self.assertRaises(IllegalTagError):
            tag.is_data_field("abc")


if __name__ == '__main__':
    unittest.main()
