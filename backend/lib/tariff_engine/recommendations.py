# backend/lib/tariff_engine/recommendations.py
from typing import List

from .models import EnergyTip

MAX_RECOMMENDATIONS = 4

STARTER_RECOMMENDATIONS = (
    "Start tracking your energy usage with the Bill Calculator",
    "Enter your meter readings to get personalized predictions",
    "Check back after a few calculations for AI insights",
)

HIGH_USAGE = (
    "Your usage is quite high. Consider reducing AC usage during peak hours",
    "Switch to energy-efficient appliances to reduce consumption",
)
MODERATE_USAGE = "Moderate usage detected. Optimize appliance usage timing"
GOOD_USAGE = "Good energy usage! Maintain current consumption patterns"
LOW_EFFICIENCY = (
    "Focus on improving energy efficiency with LED bulbs",
    "Unplug devices when not in use to reduce phantom loads",
)
FAIR_EFFICIENCY = (
    "Regular maintenance of appliances can improve efficiency",
    "Use programmable thermostats for better control",
)
MONITOR = "Monitor your usage regularly for better energy management"


def generate_recommendations(usage, efficiency) -> List[str]:
    """
    Ordered advice for a usage level (kWh per period) and efficiency score.

    Usage bucket first, then efficiency bucket, then the generic monitoring
    tip, cut to MAX_RECOMMENDATIONS.
    """
    if usage == 0:
        return list(STARTER_RECOMMENDATIONS)

    tips = []
    if usage > 300:
        tips.extend(HIGH_USAGE)
    elif usage > 150:
        tips.append(MODERATE_USAGE)
    else:
        tips.append(GOOD_USAGE)

    if efficiency < 50:
        tips.extend(LOW_EFFICIENCY)
    elif efficiency < 75:
        tips.extend(FAIR_EFFICIENCY)

    tips.append(MONITOR)
    return tips[:MAX_RECOMMENDATIONS]


START_TIP = EnergyTip(
    id="start",
    category="Getting Started",
    title="Start Tracking Your Usage",
    description="Use the Bill Calculator to enter your meter readings and begin monitoring your energy consumption",
    savings="Track to save",
    difficulty="Easy",
    priority="High",
)

HIGH_USAGE_TIP = EnergyTip(
    id="high-usage",
    category="Urgent",
    title="High Usage Alert",
    description="Your usage is quite high. Focus on reducing AC usage and switching to efficient appliances immediately",
    savings="₹500/month",
    difficulty="Medium",
    priority="Critical",
)


def personalized_tips(usage) -> List[EnergyTip]:
    """Tips catalogue with priorities raised for heavier usage."""
    tips = [
        EnergyTip("1", "Lighting", "Switch to LED Bulbs",
                  "LED bulbs use 75% less energy than incandescent bulbs and last 25 times longer",
                  "₹200/month", "Easy", "High" if usage > 100 else "Medium"),
        EnergyTip("2", "Cooling", "Optimize AC Temperature",
                  "Set your AC to 24°C instead of 22°C. Each degree higher can save 6% energy",
                  "₹300/month", "Easy", "High" if usage > 200 else "Medium"),
        EnergyTip("3", "Appliances", "Unplug Devices When Not in Use",
                  "Electronics consume power even when turned off. Unplug to avoid phantom loads",
                  "₹150/month", "Easy", "Medium"),
        EnergyTip("4", "Water Heating", "Use Timer for Water Heater",
                  "Heat water only when needed. Use a timer to automatically turn off the heater",
                  "₹250/month", "Medium", "High" if usage > 150 else "Low"),
        EnergyTip("5", "Lighting", "Use Natural Light",
                  "Open curtains and blinds during daytime to reduce artificial lighting needs",
                  "₹100/month", "Easy", "Medium"),
        EnergyTip("6", "Appliances", "Regular Appliance Maintenance",
                  "Clean AC filters, defrost refrigerator, and service appliances regularly",
                  "₹180/month", "Medium", "High" if usage > 250 else "Medium"),
    ]

    if usage == 0:
        return [START_TIP] + tips[:3]
    if usage > 300:
        tips.insert(0, HIGH_USAGE_TIP)
    return tips
