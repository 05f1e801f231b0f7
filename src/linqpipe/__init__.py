from linqpipe.errors import (
    LinqPipeError, EmptySequence, InvalidCast, PreconditionViolation, PipelineConsumed
)
from linqpipe.pipe.cursor import Cursor, AbstractStage
from linqpipe.pipe.core import Pipeline, AbstractSegment, segment
from linqpipe.pipe.sources import query, from_, from_iterable, from_sequence, from_buffer

import logging

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())
