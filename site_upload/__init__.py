"""Site boundary file upload.

Polls an external upload/virus-scan service for a user's KML or Shapefile,
validates the stored file, asks the geo-parser service to extract its
geometry as GeoJSON and decides which site-details wizard path to take.
"""

__version__ = "0.1.0"
