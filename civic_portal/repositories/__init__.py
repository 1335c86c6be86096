"""레포지토리 패키지 — 원격 저장소 접근 계층.

Repository package — Remote store access layer.
Contains the RemoteIssueStore contract and its HTTP implementation.
Services never call the backend directly; they go through this layer.
"""
