"""
Built-in page label presets.

Labels are stored exactly as picked; matching against the catalogue is
case-insensitive. `CUSTOM` is the sentinel a picker sends for "type your
own label", which leaves the current name untouched.
"""

CUSTOM = "__custom__"

BUILTIN_PRESETS = [
    "INTRODUCTION",
    "TABLE OF CONTENTS",
    "EXECUTIVE SUMMARY",
    "WHO ARE WE",
    "ABOUT US",
    "OUR APPROACH",
    "YOUR SOLUTION",
    "SERVICES",
    "SCOPE OF WORK",
    "HOW WE GET RESULTS",
    "METHODOLOGY",
    "DELIVERABLES",
    "CASE STUDIES",
    "CASE STUDY",
    "TESTIMONIALS",
    "YOUR INVESTMENT",
    "PRICING",
    "TIMELINE",
    "FAQ",
    "TERMS & CONDITIONS",
    "NEXT STEPS",
    "CONTACT",
    "APPENDIX",
]
