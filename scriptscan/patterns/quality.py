from __future__ import annotations
from .base import RulePack


class PerformanceIssues(RulePack):
    NAME = "performanceIssues"
    ORDER = 60
    RULES = [
        {
            # Heuristic: the lookahead scans forward to the next "{" (or end of
            # text), so a Wait( in a later block can hide an unguarded loop.
            "pattern": r"while\s+true\s+do(?![^{]*Wait\()",
            "title": "Infinite loop detected",
            "description": "Infinite loop without Wait() function",
            "severity": "high",
            "suggestion": "Always include Wait() in loops and implement loop breaking conditions. Example: while true do -- code here Citizen.Wait(0) if shouldBreak then break end end",
        },
        {
            "pattern": r"GetActivePlayers|GetGamePool",
            "title": "Resource intensive operation",
            "description": "Performance heavy operation without caching",
            "severity": "medium",
            "suggestion": "Cache results and implement cooldowns between operations. Example: local cachedPlayers = {} local lastUpdate = 0 -- Update cache periodically",
        },
    ]


class Debugging(RulePack):
    NAME = "debugging"
    ORDER = 70
    RULES = [
        {
            "pattern": r"print\s*\(|Citizen\.Trace",
            "title": "Debug output detected",
            "description": "Debug output in production code",
            "severity": "low",
            "suggestion": "Replace with proper logging system. Example: if Config.Debug then exports['logging']:Log(message, level) end",
        },
    ]
