"""Upload-flow orchestration.

Drives one upload from "sent to the uploader" to a wizard decision:
1. Poll the uploader → wait while pending / scanning
2. Validate the filename → extract geometry → classify single vs multi-site
3. Write the session once → return a ``NavigationDecision``
"""
