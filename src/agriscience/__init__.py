"""AgriScience — agricultural management API.

Crop and protocol catalogs, recommendations, productivity estimates backed
by IBGE statistics, field monitoring with alerts, and a WebSocket channel
that pushes new readings and alerts to their owners as they are written.
"""

__version__ = "0.1.0"
