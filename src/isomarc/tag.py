from isomarc.errors import IllegalTagError

CONTROL_NUMBER_TAG = "001"


def is_valid(tag) -> bool:
    return isinstance(tag, str) and len(tag) == 3 and tag.isascii() and tag.isdigit()


def check(tag) -> str:
    if not is_valid(tag):
        raise IllegalTagError(tag)
    return tag


def is_control_field(tag: str) -> bool:
    return check(tag) < "010" and tag != "000"


def is_control_number_field(tag: str) -> bool:
    return check(tag) == CONTROL_NUMBER_TAG


def is_data_field(tag: str) -> bool:
    return not is_control_field(tag)
