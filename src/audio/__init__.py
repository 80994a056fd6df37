# src/audio/__init__.py
# ======================
# Audio Layer - VoiceRedact
#
# Responsibility:
#   - Upload validation and format conversion to WAV (normalizer.py)
#   - WAV container decode/encode to float PCM frames (container.py)
#
# No redaction happens here; see src/redaction/.
