from ._common import init_decoder, Decoder, DecoderConfig
from ._common import LogParseFailure, ParserDefinitionError
from ._common import STATUS_OK, STATUS_FAILED
from .record import Record
from .timestamp import TimestampParser
from .preset import DECODERS

__version__ = '0.1.0'
