from isomarc.constants import WIRE_ENCODING


class CharacterConverter:
    def convert(self, data: str) -> str:
        raise NotImplementedError


class Utf8Converter(CharacterConverter):
    """Reads payload units as UTF-8 encoded bytes."""

    def __init__(self, errors: str = "strict") -> None:
        self.errors = errors

    def convert(self, data: str) -> str:
        return data.encode(WIRE_ENCODING).decode("utf-8", errors=self.errors)
