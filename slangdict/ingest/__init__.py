from slangdict.ingest.pipeline import (
    IngestReport,
    find_references,
    merge_records,
    run_ingest,
)
from slangdict.ingest.reader import RecordError, parse_record, read_records
from slangdict.ingest.text import (
    extract_words,
    format_dialogue,
    slugify,
    transliterate,
)

__all__ = [
    "IngestReport",
    "find_references",
    "merge_records",
    "run_ingest",
    "RecordError",
    "parse_record",
    "read_records",
    "extract_words",
    "format_dialogue",
    "slugify",
    "transliterate",
]
