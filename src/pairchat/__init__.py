"""Reusable building blocks of the pairchat service: realtime transport and client helpers."""
