"""서비스 패키지 — 이슈 수명주기 비즈니스 로직 계층.

Service package — Issue lifecycle business logic layer.
Contains the transition table, the shared issue cache, the optimistic
mutation controller and the workflows built on it. Workflows receive the
controller as their first argument and never write the cache directly.
"""
