"""MindCare AI - mental wellness backend."""
