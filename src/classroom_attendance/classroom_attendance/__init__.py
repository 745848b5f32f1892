"""Classroom Attendance package.

This package is organized by feature modules (users, subjects, attendance,
requests, ...) with a thin Flask controller layer over service/repository
layers. Durable state lives in MySQL; short-lived coordination state
(attendance sessions, staged requests, OTPs) lives in Redis.
"""
