# Utils module exports
from .identifiers import MarketIdentifier, parse_identifier
from .fields import probe, probe_float, probe_id, probe_list, probe_object, to_float

__all__ = [
    "MarketIdentifier",
    "parse_identifier",
    "probe",
    "probe_float",
    "probe_id",
    "probe_list",
    "probe_object",
    "to_float",
]
