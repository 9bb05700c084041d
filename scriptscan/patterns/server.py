from __future__ import annotations
from .base import RulePack


class ResourceManipulation(RulePack):
    NAME = "resourceManipulation"
    ORDER = 30
    RULES = [
        {
            "pattern": r"StopResource|StartResource|RestartResource",
            "title": "Resource control manipulation",
            "description": "Resource control without proper permissions",
            "severity": "critical",
            "suggestion": "Restrict resource control to high-level ACE permissions only. Example: if IsPlayerAceAllowed(source, 'command.resources') then",
        },
        {
            "pattern": r"LoadResourceFile|SaveResourceFile",
            "title": "Resource file manipulation",
            "description": "Resource file access without proper validation",
            "severity": "high",
            "suggestion": "Implement strict file access controls and path validation. Example: if IsPathSafe(path) and IsFileOperationAllowed(source) then",
        },
    ]


class EventSystem(RulePack):
    NAME = "eventSystem"
    ORDER = 40
    RULES = [
        {
            "pattern": r"RegisterNetEvent|RegisterServerEvent",
            "title": "Unprotected event registration",
            "description": "Event registration without proper validation",
            "severity": "high",
            "suggestion": "Use prefix naming conventions and implement event handlers with proper validation. Example: AddEventHandler('prefix:eventName', function(data) if ValidateEventData(data) then",
        },
        {
            "pattern": r"TriggerEvent|TriggerServerEvent",
            "title": "Unprotected event trigger",
            "description": "Event triggering without proper validation",
            "severity": "high",
            "suggestion": "Add rate limiting, data validation, and event logging. Example: if not IsPlayerRateLimited(source) and ValidateEventData(data) then",
        },
    ]


class NuiExploitation(RulePack):
    NAME = "nuiExploitation"
    ORDER = 80
    RULES = [
        {
            "pattern": r"SendNUIMessage|RegisterNUICallback",
            "title": "Unprotected NUI interaction",
            "description": "NUI interaction without proper validation",
            "severity": "medium",
            "suggestion": "Validate all NUI data and implement request limiting. Example: RegisterNUICallback('action', function(data, cb) if ValidateNUIData(data) then",
        },
    ]


class DynamicExecution(RulePack):
    NAME = "dynamicExecution"
    ORDER = 90
    RULES = [
        {
            # word boundary keeps LoadResourceFile and friends out
            "pattern": r"\b(?:loadstring|load)\s*\(",
            "title": "Dynamic code execution",
            "description": "Runtime compilation of code that may come from a client or remote source",
            "severity": "critical",
            "suggestion": "Never compile code received at runtime. Replace load()/loadstring() with a fixed dispatch table of allowed actions. Example: local action = Actions[name] if action then action(data) end",
        },
        {
            "pattern": r"ExecuteCommand\s*\([^)\n]*\.\.",
            "title": "Command built from input",
            "description": "Console command assembled by string concatenation",
            "severity": "high",
            "suggestion": "Avoid building commands from player data. Validate arguments against an allow-list and check ACE permissions before ExecuteCommand.",
        },
    ]


class DatabaseAccess(RulePack):
    NAME = "databaseAccess"
    ORDER = 100
    RULES = [
        {
            "pattern": r"(?:mysql\.(?:async|sync)\.\w+|exports\.oxmysql[:.]\w+|MySQL\.\w+(?:\.await)?)\s*\(\s*['\"][^'\"\n]*['\"]\s*\.\.",
            "flags": "i",
            "title": "SQL query built by concatenation",
            "description": "Database query text concatenated with variables, open to SQL injection",
            "severity": "high",
            "suggestion": "Use parameterized queries. Example: MySQL.query('SELECT * FROM users WHERE identifier = ?', { identifier })",
        },
    ]
