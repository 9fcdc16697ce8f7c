"""Compiler for the Aura language: lexer, parser, LLVM IR generator and a clang-driving command."""

__version__ = "0.1.0"