"""
Core package for the video transcription pipeline.

This package contains the modular components used by the HTTP entrypoint to
convert an uploaded video to audio, store the audio in Cloud Storage, run
long-running speech recognition on it, and summarise the transcript.
"""
