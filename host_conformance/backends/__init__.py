"""Run backends executing descriptors as local processes or containers."""
