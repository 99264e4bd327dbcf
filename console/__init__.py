"""
Console Service - Tournament administration and league tables

Responsibilities:
- Tournament, team and player registry (CRUD)
- Team assignment and whole-set replacement per tournament
- Match scheduling, status changes and score entry
- League table (standings) per tournament
- Change events for open standings views
"""
