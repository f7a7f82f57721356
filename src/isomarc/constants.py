RT = '\x1d'
FT = '\x1e'
US = '\x1f'
BLANK = ' '

LEADER_LENGTH = 24
DIRECTORY_ENTRY_LENGTH = 12

# the wire is read one byte per unit
WIRE_ENCODING = 'iso-8859-1'
