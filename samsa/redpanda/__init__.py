"""Namespace for Redpanda-specific interfaces; it holds no modules yet."""