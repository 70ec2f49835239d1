"""Pipeline components.

This package turns merged CloudWatch datapoints into the daily traffic table
and renders it as plain text (push payloads) and Markdown (HTTP body).
"""
