from __future__ import annotations
from .base import RulePack


class PlayerExploits(RulePack):
    NAME = "playerExploits"
    ORDER = 10
    RULES = [
        {
            "pattern": r"SetPlayerModel|GetHashKey|RequestModel",
            "title": "Player model manipulation",
            "description": "Player model changes without validation",
            "severity": "medium",
            "suggestion": "Create a whitelist of allowed models and validate model changes server-side. Example: if Config.AllowedModels[modelHash] then",
        },
        {
            "pattern": r"SetPlayerInvincible|SetPlayerControl",
            "title": "Player state manipulation",
            "description": "Player state changes without server validation",
            "severity": "high",
            "suggestion": "Move state changes server-side and implement periodic state verification checks",
        },
        {
            "pattern": r"GiveWeaponToPed|RemoveWeaponFromPed|SetPedAmmo",
            "title": "Weapon manipulation",
            "description": "Weapon changes without proper validation",
            "severity": "high",
            "suggestion": "Use server-side weapon management and implement ammo tracking. Example: if IsWeaponAllowed(weaponHash) and CheckAmmoLimit(ammo) then",
        },
    ]


class VehicleExploits(RulePack):
    NAME = "vehicleExploits"
    ORDER = 20
    RULES = [
        {
            "pattern": r"SetVehicleEngineOn|SetVehicleDoorOpen",
            "title": "Vehicle property manipulation",
            "description": "Vehicle property changes without validation",
            "severity": "medium",
            "suggestion": "Verify vehicle ownership and implement cooldowns on vehicle modifications. Example: if IsVehicleOwnedBy(vehicle, source) and CheckCooldown(source) then",
        },
        {
            "pattern": r"SetVehicleEngineHealth|SetVehicleBodyHealth",
            "title": "Vehicle health manipulation",
            "description": "Vehicle health changes without validation",
            "severity": "medium",
            "suggestion": "Add server-side health validation and gradual health change checks. Example: if IsHealthChangeValid(currentHealth, newHealth) then",
        },
    ]


class AntiCheatBypass(RulePack):
    NAME = "antiCheatBypass"
    ORDER = 50
    RULES = [
        {
            "pattern": r"SetEntityVisible|SetEntityAlpha",
            "title": "Visibility manipulation",
            "description": "Entity visibility changes without validation",
            "severity": "high",
            "suggestion": "Implement server-side visibility verification and periodic checks. Example: CreateThread(function() while true do VerifyEntityVisibility() Wait(1000) end end)",
        },
        {
            "pattern": r"SetRunSprintMultiplier|SetSwimMultiplier",
            "title": "Movement speed manipulation",
            "description": "Player movement speed changes without validation",
            "severity": "high",
            "suggestion": "Add speed monitoring and position validation server-side. Example: if not IsPlayerSpeedValid(source, speed) then HandleCheatDetection(source) end",
        },
    ]
