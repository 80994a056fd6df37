# src/api/__init__.py
# =====================
# API Layer - VoiceRedact
#
# Responsibility:
#   - Expose the redaction endpoints (see src/api/upload.py)
#   - Accept audio file upload (wav | mp3 | m4a | flac) via multipart/form-data
#   - Return redacted audio as audio/wav
