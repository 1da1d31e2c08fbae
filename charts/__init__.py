"""Pure chart generation package for paystackCharts.

This package validates chart requests, pages through an injected records
service, and aggregates records into chart DTOs. It must not import Django or
perform any I/O except through the injected records service.
"""

from .dto import ChartRequest
from .generator import ChartGenerationStream, generate_chart_data
from .validation import validate_chart_params

__all__ = ["ChartGenerationStream", "ChartRequest", "generate_chart_data", "validate_chart_params"]
