"""Compiler for the Bonobo language: lexer, parser and x86-64 NASM assembly generator."""

__version__ = "0.1.0"