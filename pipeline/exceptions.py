"""Run-level failures raised by the enrichment pipeline.

Problems confined to a single row, geometry or record are never raised;
they are dropped or counted in the run statistics instead.
"""


class PipelineError(Exception):
    """Base class for failures that abort a whole run."""


class NoInputRecordsError(PipelineError):
    """No valid detection record was available to process."""


class OutputWriteError(PipelineError):
    """An output artifact could not be written."""


class ReferenceDataError(PipelineError):
    """A reference geometry file is not a usable GeoJSON FeatureCollection."""


class IncompleteRunError(PipelineError):
    """The detection stream failed part way; `result` holds what was processed."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result
