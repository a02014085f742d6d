"""Audio capture and spectrum visualization.

The browser streams microphone PCM frames and encoded recorder chunks to the
service; uploaded files are decoded server-side. Either source feeds a
frequency analyzer whose bar spectrum is pushed to subscribers every frame.
"""
