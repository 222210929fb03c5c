"""Units of work composed by the upload orchestrator.

Each activity performs one step of handling an uploaded file:
- validate_extension: Check the filename against the chosen file type
- map_errors: Turn uploader and geo-parser errors into user-facing messages
- extract_coordinates: Fetch GeoJSON from the geo-parser and summarise it
"""
