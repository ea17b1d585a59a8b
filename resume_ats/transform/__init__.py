from .engine import TransformEngine, TransformResult, fix_issues, plan_fixes

__all__ = ["TransformEngine", "TransformResult", "fix_issues", "plan_fixes"]
