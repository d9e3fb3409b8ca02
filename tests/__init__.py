"""
Tests for functer_math

This package contains tests for:
- LaTeX parsing and MathJSON trees
- Evaluator, transpiler and native synthesis
- Boundaries, calculus helpers and sampling
- The CompiledFunction / MathEngine contract
"""
