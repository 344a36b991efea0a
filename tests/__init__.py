"""
Duplex Speech Tests
===================

This package contains unit tests for the capture, VAD and duplex recognition components.

Test Structure:
- test_features.py: Tests for energy / FFT / dominant frequency features
- test_vad.py: Tests for speech classifiers and the segmentation state machine
- test_source.py, test_mic.py: Tests for audio sources and window sampling
- test_protocol.py, test_response.py, test_dispatcher.py: Tests for the wire protocol helpers
- test_duplex.py: Tests for the duplex client against a mocked HTTP session
- test_pipeline.py, test_worker.py: Tests for the pipeline wiring and worker threads
- test_config.py: Tests for configuration management
- conftest.py: Shared test fixtures and signal generators

To run tests:
    pytest tests/

To run specific test file:
    pytest tests/test_vad.py
"""
