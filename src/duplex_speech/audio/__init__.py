"""Audio subsystem: capture, segmentation and encoding."""
