# app/services/narrative.py
"""Narrative reports over computed aggregates.

Prompts only ever carry figures computed by ``app.services.aggregation``.
Each prompt has a fallback builder that renders the same figures into a
fixed template, so an endpoint can answer when the text service cannot.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI

from app.services.aggregation import completeness_label, num, percent, safe_div

logger = logging.getLogger(__name__)

GUARDRAIL = (
    "You write church district financial and attendance reports. "
    "Use only the figures supplied in the prompt. Do not invent numbers, "
    "trends, percentages, assemblies or historical comparisons. If a figure "
    "is missing or zero, say so plainly."
)

# next-quarter planning targets applied to current totals
INCOME_TARGET_GROWTH = 0.10
ATTENDANCE_TARGET_GROWTH = 0.15


class NarrativeUnavailable(RuntimeError):
    """The text-generation service cannot be used (no key, upstream error, bad reply)."""


class NarrativeClient:
    """Thin wrapper around the OpenAI chat-completions API."""

    def __init__(self, api_key: Optional[str], model: str = "gpt-4.1", timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client: Optional[OpenAI] = None

    def _openai(self) -> OpenAI:
        if not self.api_key:
            raise NarrativeUnavailable("OPENAI_API_KEY is not configured")
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def complete(
        self,
        prompt: str,
        *,
        role: Optional[str] = None,
        json_mode: bool = False,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        client = self._openai()
        system = GUARDRAIL if not role else f"{role}\n\n{GUARDRAIL}"
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
        }
        if max_tokens:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        completion = client.chat.completions.create(**kwargs)
        content = completion.choices[0].message.content or ""
        if not content.strip():
            raise NarrativeUnavailable("empty completion")
        return content

    def complete_json(self, prompt: str, **kwargs: Any) -> Dict[str, Any]:
        content = self.complete(prompt, json_mode=True, **kwargs)
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise NarrativeUnavailable(f"completion was not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise NarrativeUnavailable("completion JSON was not an object")
        return data


# ─────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ─────────────────────────────────────────────────────────────────────────────

def money(value: Any) -> str:
    """Thousands-separated amount; whole numbers without decimals."""
    v = num(value)
    return f"{int(v):,}" if v.is_integer() else f"{v:,.2f}"


def count(value: Any) -> str:
    return f"{int(round(num(value))):,}"


def pct(value: Any) -> str:
    return f"{num(value):.1f}%"


def period_label(month: Optional[str], year: Optional[str]) -> str:
    if not month and not year:
        return "All Time"
    return " ".join(p for p in (month, year) if p)


def _numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {s}" for i, s in enumerate(items, 1)) or "None"


def _top_bottom(per_assembly: Sequence[Dict[str, Any]], n: int = 3):
    names = [a["assembly"] for a in per_assembly]
    return names[:n], list(reversed(names[-n:]))


# ─────────────────────────────────────────────────────────────────────────────
# Single assembly report
# ─────────────────────────────────────────────────────────────────────────────

ASSEMBLY_ROLE = (
    "You are an experienced church growth consultant for Nigerian churches who "
    "writes ministry audit reports for pastors: professional, honest, pastoral."
)

ASSEMBLY_SECTIONS = (
    "EXECUTIVE SUMMARY",
    "FINANCIAL ANALYSIS",
    "ATTENDANCE ANALYSIS",
    "STRENGTHS",
    "WEAKNESSES & GAPS",
    "LOCAL CONTEXT RECOMMENDATIONS",
    "GROWTH STRATEGIES",
    "DIGITAL MINISTRY STRATEGY",
    "YOUTH & FAMILY ENGAGEMENT",
    "FINANCIAL STEWARDSHIP",
)


def assembly_figures(assembly: str, location: str, period: str, summary: Dict[str, Any]) -> str:
    reports = summary["totalReports"]
    return (
        f"CHURCH DATA:\n"
        f"- Assembly: {assembly}\n"
        f"- Location: {location}\n"
        f"- Period: {period}\n\n"
        f"FINANCIAL DATA:\n"
        f"- Total Income: NGN {money(summary['totalIncome'])}\n"
        f"- Sunday Service Income: NGN {money(summary['sundayIncome'])}\n"
        f"- Midweek Service Income: NGN {money(summary['midweekIncome'])}\n"
        f"- Special Service Income: NGN {money(summary['specialIncome'])}\n"
        f"- Sunday Tithes: NGN {money(summary['sundayTithes'])}\n"
        f"- Average Income per Report: NGN {money(round(safe_div(summary['totalIncome'], reports)))}\n\n"
        f"ATTENDANCE DATA (Sunday figures corrected for SBS overlap):\n"
        f"- Total Attendance: {count(summary['totalAttendance'])}\n"
        f"- Sunday Attendance: {count(summary['sundayAttendance'])}\n"
        f"- Midweek Attendance: {count(summary['midweekAttendance'])}\n"
        f"- Special Attendance: {count(summary['specialAttendance'])}\n"
        f"- Uncorrected main + SBS attendance: {count(summary['rawAttendance'])}\n\n"
        f"ADDITIONAL METRICS:\n"
        f"- Number of Reports: {reports}\n"
        f"- Total Records: {summary['totalRecords']}\n"
        f"- Sunday Reports: {summary['sundayReports']}\n"
        f"- Midweek Reports: {summary['midweekReports']}\n"
        f"- Special Reports: {summary['specialReports']}\n"
    )


def assembly_prompt(assembly: str, location: str, period: str, summary: Dict[str, Any]) -> str:
    sections = "\n".join(f"{i}. {s}" for i, s in enumerate(ASSEMBLY_SECTIONS, 1))
    return (
        "Write a ministry audit report for the assembly below. Base every insight "
        "only on the data supplied. Include all sections with a clear header each; "
        "no markdown formatting.\n\n"
        f"{assembly_figures(assembly, location, period, summary)}\n"
        f"REQUIRED SECTIONS:\n{sections}\n"
    )


def assembly_fallback(assembly: str, location: str, period: str, summary: Dict[str, Any]) -> str:
    income = summary["totalIncome"]
    sunday_share = percent(summary["sundayIncome"], income)
    midweek_share = percent(summary["midweekIncome"], income)
    lines = [
        f"ASSEMBLY REPORT: {assembly}",
        f"Location: {location}",
        f"Period: {period}",
        "",
        assembly_figures(assembly, location, period, summary).strip(),
        "",
        "OBSERVATIONS",
        f"- Sunday services provided {pct(sunday_share)} of income; midweek services {pct(midweek_share)}.",
        f"- Income per attendee: NGN {money(round(safe_div(income, summary['totalAttendance'])))}.",
    ]
    if summary["midweekReports"] == 0:
        lines.append("- No midweek service reports were submitted for this period.")
    if summary["totalReports"] == 0:
        lines.append("- No reports were submitted for this period.")
    lines += [
        "",
        "This report was generated from submitted figures without narrative analysis.",
    ]
    return "\n".join(lines)


# ─────────────────────────────────────────────────────────────────────────────
# Financial analysis (filtered report set)
# ─────────────────────────────────────────────────────────────────────────────

FINANCIAL_ROLE = (
    "You are a financial analyst for a church district. Analyze the service "
    "financial data and provide professional insights, recommendations and a "
    "formatted financial report with assembly-level analysis."
)

FINANCIAL_SCHEMA = """{
  "executive_summary": "string",
  "key_findings": ["string"],
  "recommendations": ["string"],
  "financial_analysis": {
    "revenue_trends": "string",
    "attendance_patterns": "string",
    "collection_efficiency": "string"
  },
  "assembly_performance": {
    "top_performers": ["string"],
    "areas_for_improvement": ["string"],
    "detailed_analysis": "string"
  },
  "formatted_report": "string"
}"""


def _assembly_lines(per_assembly: Sequence[Dict[str, Any]]) -> str:
    out = []
    for a in per_assembly:
        b = a["breakdown"]
        out.append(
            f"- {a['assembly']}: Total NGN {money(a['totalIncome'])} "
            f"(Avg: NGN {money(round(a['averageIncome']))}/report), "
            f"{count(a['totalAttendance'])} attendees (Avg: {count(a['averageAttendance'])}/report)\n"
            f"  Sunday: {b['sunday']['reports']} reports, NGN {money(b['sunday']['income'])}\n"
            f"  Midweek: {b['midweek']['reports']} reports, NGN {money(b['midweek']['income'])}\n"
            f"  Special: {b['special']['reports']} reports, NGN {money(b['special']['income'])}"
        )
    return "\n".join(out) or "- No assembly data"


def financial_prompt(
    summary: Dict[str, Any],
    per_assembly: Sequence[Dict[str, Any]],
    report_count: int,
    service_type: str,
    assembly: Optional[str],
    period: str,
) -> str:
    return (
        "Analyze the following church service financial data and return JSON.\n\n"
        "DATA OVERVIEW:\n"
        f"- Total Reports: {report_count}\n"
        f"- Service Type: {service_type.upper()}\n"
        f"- Assembly: {assembly or 'All Assemblies'}\n"
        f"- Period: {period}\n"
        f"- Total Income: NGN {money(summary['totalIncome'])}\n"
        f"- Total Attendance: {count(summary['totalAttendance'])}\n"
        f"- Sunday Reports: {summary['sundayReports']}\n"
        f"- Midweek Reports: {summary['midweekReports']}\n"
        f"- Special Reports: {summary['specialReports']}\n\n"
        "FINANCIAL BREAKDOWN:\n"
        f"- Sunday Income: NGN {money(summary['sundayIncome'])}\n"
        f"- Midweek Income: NGN {money(summary['midweekIncome'])}\n"
        f"- Special Income: NGN {money(summary['specialIncome'])}\n"
        f"- Sunday Tithes: NGN {money(summary['sundayTithes'])}\n"
        f"- Sunday Attendance: {count(summary['sundayAttendance'])}\n"
        f"- Midweek Attendance: {count(summary['midweekAttendance'])}\n"
        f"- Special Attendance: {count(summary['specialAttendance'])}\n\n"
        f"ASSEMBLY BREAKDOWN ({len(per_assembly)} assemblies, highest income first):\n"
        f"{_assembly_lines(per_assembly)}\n\n"
        f"Respond with JSON of exactly this structure:\n{FINANCIAL_SCHEMA}\n"
    )


def financial_fallback(
    summary: Dict[str, Any],
    per_assembly: Sequence[Dict[str, Any]],
    report_count: int,
    service_type: str,
    assembly: Optional[str],
    period: str,
) -> Dict[str, Any]:
    income = summary["totalIncome"]
    attendance = summary["totalAttendance"]
    avg_income = safe_div(income, report_count)
    avg_attendance = safe_div(attendance, report_count)
    shares = {st: percent(summary[f"{st}Income"], income) for st in ("sunday", "midweek", "special")}
    top, low = _top_bottom(per_assembly)

    detail_blocks = []
    for i, a in enumerate(per_assembly, 1):
        b = a["breakdown"]
        detail_blocks.append(
            f"{i}. {a['assembly']}\n"
            f"   Total Income: NGN {money(a['totalIncome'])}\n"
            f"   Total Attendance: {count(a['totalAttendance'])}\n"
            f"   Report Count: {a['reportCount']}\n"
            f"   Average Income/Report: NGN {money(round(a['averageIncome']))}\n"
            f"   Average Attendance/Report: {count(a['averageAttendance'])}\n"
            f"   Sunday Services: {b['sunday']['reports']} reports, NGN {money(b['sunday']['income'])}\n"
            f"   Midweek Services: {b['midweek']['reports']} reports, NGN {money(b['midweek']['income'])}\n"
            f"   Special Services: {b['special']['reports']} reports, NGN {money(b['special']['income'])}"
        )

    formatted = "\n".join(
        [
            "FINANCIAL ANALYSIS REPORT",
            f"Period: {period}",
            f"Assembly: {assembly or 'All Assemblies'}",
            f"Service Type: {service_type.upper()}",
            "",
            "EXECUTIVE SUMMARY",
            f"Total Income: NGN {money(income)}",
            f"Total Attendance: {count(attendance)}",
            f"Number of Reports: {report_count}",
            f"Assemblies Analyzed: {len(per_assembly)}",
            "",
            "PERFORMANCE BREAKDOWN BY SERVICE TYPE",
            f"1. Sunday Services: {summary['sundayReports']} reports, NGN {money(summary['sundayIncome'])} income, "
            f"{count(summary['sundayAttendance'])} attendance",
            f"2. Midweek Services: {summary['midweekReports']} reports, NGN {money(summary['midweekIncome'])} income, "
            f"{count(summary['midweekAttendance'])} attendance",
            f"3. Special Services: {summary['specialReports']} reports, NGN {money(summary['specialIncome'])} income, "
            f"{count(summary['specialAttendance'])} attendance",
            "",
            "ASSEMBLY PERFORMANCE",
            "Top Performing Assemblies:",
            _numbered(top),
            "",
            "Areas for Improvement:",
            _numbered(low),
            "",
            "DETAILED ASSEMBLY ANALYSIS:",
            "\n\n".join(detail_blocks) or "No assembly data",
            "",
            "KEY METRICS",
            f"- Average Income per Report: NGN {money(round(avg_income))}",
            f"- Average Attendance per Report: {count(avg_attendance)}",
            f"- Tithes Collection: NGN {money(summary['sundayTithes'])}",
        ]
    )

    return {
        "executive_summary": (
            f"This financial report covers {report_count} service reports from {len(per_assembly)} "
            f"assemblies for {period}. Total income collected was NGN {money(income)} with "
            f"{count(attendance)} total attendees."
        ),
        "key_findings": [
            f"Sunday services contributed {pct(shares['sunday'])} (NGN {money(summary['sundayIncome'])}) of total income",
            f"Midweek services contributed {pct(shares['midweek'])} (NGN {money(summary['midweekIncome'])}) of total income",
            f"Special services contributed {pct(shares['special'])} (NGN {money(summary['specialIncome'])}) of total income",
            f"Average income per report: NGN {money(round(avg_income))}",
            f"Average attendance per report: {count(avg_attendance)} attendees",
            f"Total tithes collected: NGN {money(summary['sundayTithes'])}",
            f"Top performing assembly: {top[0] if top else 'N/A'}",
        ],
        "recommendations": [
            "Review midweek service participation with assembly leaders",
            "Share the practices of the top-earning assemblies across the district",
            f"Provide targeted support to {low[0] if low else 'underperforming assemblies'}",
        ],
        "financial_analysis": {
            "revenue_trends": (
                f"Sunday services provide {pct(shares['sunday'])} of income, midweek services "
                f"{pct(shares['midweek'])} and special services {pct(shares['special'])}."
            ),
            "attendance_patterns": f"Average attendance per report is {count(avg_attendance)}.",
            "collection_efficiency": (
                f"Average income per report is NGN {money(round(avg_income))}; income per attendee is "
                f"NGN {money(round(safe_div(income, attendance)))}."
            ),
        },
        "assembly_performance": {
            "top_performers": top,
            "areas_for_improvement": low,
            "detailed_analysis": _assembly_lines(per_assembly),
        },
        "formatted_report": formatted,
    }


# ─────────────────────────────────────────────────────────────────────────────
# District-wide administrative analysis
# ─────────────────────────────────────────────────────────────────────────────

DISTRICT_ROLE = (
    "You are the District Superintendent of {district} in {location}, with long "
    "experience in church administration, financial management and ministerial "
    "oversight. Provide strategic, data-driven analysis for district leadership."
)

DISTRICT_SCHEMA_KEYS = (
    "executive_summary",
    "district_overview",
    "assembly_performance_ranking",
    "financial_health_assessment",
    "attendance_analysis",
    "operational_efficiency",
    "strategic_recommendations",
    "risk_assessment",
    "success_stories",
    "next_quarter_targets",
    "detailed_report",
)


def district_metrics(
    summary: Dict[str, Any],
    per_assembly: Sequence[Dict[str, Any]],
    compliance: Dict[str, Any],
    concentration: float,
    income_std: float,
) -> Dict[str, Any]:
    total = len(per_assembly)
    active = sum(1 for a in per_assembly if a["reportCount"] > 0)
    return {
        "totalAssemblies": total,
        "activeAssemblies": active,
        "inactiveAssemblies": total - active,
        "totalIncome": summary["totalIncome"],
        "averageIncomePerAssembly": safe_div(summary["totalIncome"], total),
        "incomeStandardDeviation": income_std,
        "totalAttendance": summary["totalAttendance"],
        "averageAttendancePerAssembly": safe_div(summary["totalAttendance"], total),
        "totalReports": summary["totalReports"],
        "averageReportsPerAssembly": safe_div(summary["totalReports"], total),
        "reportingRate": percent(active, total),
        "incomeConcentration": concentration,
        "reportingCompliance": compliance["overall_compliance_rate"],
    }


def district_prompt(
    district: str,
    location: str,
    period: str,
    summary: Dict[str, Any],
    per_assembly: Sequence[Dict[str, Any]],
    metrics: Dict[str, Any],
) -> str:
    ranking = "\n".join(
        f"{i}. {a['assembly']}: NGN {money(a['totalIncome'])} income, {count(a['totalAttendance'])} attendance, "
        f"{a['reportCount']} reports, completeness {a.get('completenessScore', 0):.0f}%"
        for i, a in enumerate(per_assembly, 1)
    )
    return (
        f"Produce a comprehensive administrative analysis of {district} for {period} ({location}).\n\n"
        "DISTRICT METRICS (JSON):\n"
        f"{json.dumps(metrics, indent=2, default=str)}\n\n"
        "SERVICE SUMMARY (JSON):\n"
        f"{json.dumps(summary, indent=2, default=str)}\n\n"
        f"ASSEMBLY RANKING BY INCOME:\n{ranking or 'No assembly data'}\n\n"
        "Respond with a JSON object with these keys: "
        f"{', '.join(DISTRICT_SCHEMA_KEYS)}. 'detailed_report' is a complete narrative "
        "report in professional format."
    )


def district_fallback(
    district: str,
    location: str,
    period: str,
    summary: Dict[str, Any],
    per_assembly: Sequence[Dict[str, Any]],
    metrics: Dict[str, Any],
    compliance: Dict[str, Any],
) -> Dict[str, Any]:
    top, bottom = _top_bottom(per_assembly)
    income = summary["totalIncome"]
    attendance = summary["totalAttendance"]
    active = metrics["activeAssemblies"]

    ranking = [
        {
            "rank": i,
            "assembly": a["assembly"],
            "total_income": a["totalIncome"],
            "total_attendance": a["totalAttendance"],
            "income_per_attendee": round(a["incomePerAttendee"]),
            "report_completeness": completeness_label(a.get("completenessScore", 0)),
            "key_strength": "Active reporting" if a["reportCount"] > 0 else "None recorded",
            "major_challenge": "No reports submitted" if a["reportCount"] == 0 else "Data completeness",
        }
        for i, a in enumerate(per_assembly, 1)
    ]

    detailed = "\n".join(
        [
            "DISTRICT ADMIN ANALYSIS REPORT",
            district,
            f"Location: {location}",
            f"Period: {period}",
            "",
            "DISTRICT SUMMARY",
            f"Total Income: NGN {money(income)}",
            f"Total Attendance: {count(attendance)}",
            f"Number of Reports: {summary['totalReports']}",
            f"Assemblies Reporting: {active} of {metrics['totalAssemblies']}",
            f"Income Concentration (top 3): {pct(metrics['incomeConcentration'])}",
            f"Reporting Compliance: {pct(compliance['overall_compliance_rate'])}",
            "",
            "ASSEMBLY RANKING",
            "\n".join(
                f"{r['rank']}. {r['assembly']}: NGN {money(r['total_income'])}, "
                f"{count(r['total_attendance'])} attendance, completeness {r['report_completeness']}"
                for r in ranking
            )
            or "No assembly data",
            "",
            "AREAS OF FOCUS",
            "- Improve reporting compliance in silent assemblies: "
            + (", ".join(compliance["lagging_assemblies"]) or "none"),
            "- Reduce dependence on the highest-earning assemblies",
        ]
    )

    return {
        "executive_summary": (
            f"District analysis for {metrics['totalAssemblies']} assemblies for {period}. "
            f"Total income: NGN {money(income)}. Active reporting assemblies: {active}."
        ),
        "district_overview": (
            f"{active} of {metrics['totalAssemblies']} assemblies submitted reports; "
            f"the top three assemblies account for {pct(metrics['incomeConcentration'])} of income."
        ),
        "assembly_performance_ranking": ranking,
        "financial_health_assessment": {
            "total_income": income,
            "average_income_per_assembly": metrics["averageIncomePerAssembly"],
            "income_standard_deviation": metrics["incomeStandardDeviation"],
            "income_concentration": metrics["incomeConcentration"],
            "tithe_percentage": summary["tithePercentage"],
            "areas_of_concern": ["Low reporting compliance", "Income concentration"],
        },
        "attendance_analysis": {
            "total_attendance": attendance,
            "raw_attendance": summary["rawAttendance"],
            "attendance_correction": summary["attendanceCorrection"],
            "average_attendance_per_assembly": metrics["averageAttendancePerAssembly"],
        },
        "operational_efficiency": {
            "reporting_compliance": {
                "overall_compliance_rate": compliance["overall_compliance_rate"],
                "best_performers": compliance["best_performers"],
                "lagging_assemblies": compliance["lagging_assemblies"],
            },
            "data_quality": {"completeness_score": compliance["completeness_score"]},
        },
        "strategic_recommendations": {
            "immediate_actions": [
                "Follow up with assemblies that have not submitted reports",
                "Review incomplete report rows with assembly secretaries",
            ],
            "assembly_specific_interventions": [
                {"assembly": name, "priority_area": "Reporting", "recommended_action": "Submit monthly returns"}
                for name in compliance["lagging_assemblies"]
            ],
        },
        "risk_assessment": {
            "financial_risks": ["Income concentration", "Dependence on Sunday offerings"],
        },
        "success_stories": [
            {"assembly": name, "achievement": "Highest income in period"} for name in top[:1]
        ],
        "next_quarter_targets": {
            "financial_targets": {"overall_target": round(income * (1 + INCOME_TARGET_GROWTH))},
            "attendance_targets": {"overall_target": round(attendance * (1 + ATTENDANCE_TARGET_GROWTH))},
            "reporting_targets": {"completeness_goal": 90},
        },
        "detailed_report": detailed,
        "bottom_performers": bottom,
    }


# ─────────────────────────────────────────────────────────────────────────────
# Monthly district report (Markdown)
# ─────────────────────────────────────────────────────────────────────────────

MONTHLY_ROLE = "You are a senior financial analyst and church administration expert."

ATTENDANCE_NOTE = (
    "Attendance uses corrected unique figures: people often attend both Sunday "
    "Bible Study and the main service, so a share of the smaller count is treated "
    "as overlap. 'totalAttendance' is corrected, 'rawAttendance' is the old "
    "double-counted main + SBS sum, 'estimatedOverlap' the estimated duplicates."
)


def _monthly_table(assemblies: Sequence[Dict[str, Any]], comparisons: Dict[str, Dict[str, Any]]) -> str:
    rows = [
        "| Assembly | Income | Attendance (Corrected) | Attendance (Raw) | Correction % | Tithes | % Income Change |",
        "|----------|--------|------------------------|------------------|--------------|--------|-----------------|",
    ]
    for a in assemblies:
        change = comparisons.get(a["assembly"], {}).get("change", {}).get("incomeVsPrev1", 0.0)
        rows.append(
            f"| {a['assembly']} | {money(a['totalIncome'])} | {count(a['totalAttendance'])} | "
            f"{count(a['rawAttendance'])} | {a['attendanceCorrectionPct']:.0f}% | "
            f"{money(a['totalTithes'])} | {change:.1f}% |"
        )
    return "\n".join(rows)


def _district_totals_block(t: Dict[str, Any]) -> str:
    return (
        f"- Total Income: {money(t['totalIncome'])}\n"
        f"- Total Attendance (Corrected/Unique): {count(t['totalAttendance'])}\n"
        f"- Total Attendance (Raw main + SBS): {count(t['rawAttendance'])}\n"
        f"- Attendance Correction: {count(t['attendanceCorrection'])} people "
        f"({t['attendanceCorrectionPct']:.0f}% reduction)\n"
        f"- Total Tithes: {money(t['totalTithes'])}\n"
        f"- Estimated Total Overlap: {count(t['estimatedOverlap'])}\n"
        f"- Income per Attendee: {money(t['incomePerAttendee'])}"
    )


def monthly_prompt(payload: Dict[str, Any]) -> str:
    comparisons = {c["assembly"]: c for c in payload["comparisons"]}
    return (
        "Produce a comprehensive MONTHLY FINANCIAL & NUMERICAL REPORT for a church district "
        "in clean Markdown.\n\n"
        f"ATTENDANCE NOTE: {ATTENDANCE_NOTE}\n"
        "Always use 'totalAttendance' (corrected) for attendance analysis.\n\n"
        "=========== INPUT JSON ===========\n"
        f"{json.dumps(payload, indent=2, default=str)}\n"
        "==================================\n\n"
        "Sections:\n"
        "# 1. Executive Summary\n"
        "# 2. District Totals Overview\n"
        f"{_district_totals_block(payload['districtTotals'])}\n"
        "# 3. Assembly Performance Table\n"
        f"{_monthly_table(payload['assemblies'], comparisons)}\n"
        "# 4. Attendance Analysis\n"
        "# 5. Top 3 Performing Assemblies (by corrected attendance)\n"
        "# 6. Bottom 3 Assemblies\n"
        "# 7. Data Quality & Correction Assessment\n"
        "# 8. Financial Health with Corrected Attendance\n"
        "# 9. Ministry Impact\n"
        "# 10. Strategic Recommendations\n"
    )


def monthly_fallback(payload: Dict[str, Any]) -> str:
    comparisons = {c["assembly"]: c for c in payload["comparisons"]}
    totals = payload["districtTotals"]
    by_attendance = sorted(payload["assemblies"], key=lambda a: -a["totalAttendance"])
    reporting = [a for a in by_attendance if a["reportCount"] > 0]
    silent = [a["assembly"] for a in by_attendance if a["reportCount"] == 0]

    def _ranked(items: List[Dict[str, Any]]) -> str:
        return "\n".join(
            f"{i}. **{a['assembly']}**: {count(a['totalAttendance'])} attendees, NGN {money(a['totalIncome'])}"
            for i, a in enumerate(items, 1)
        ) or "No data"

    change_lines = []
    for c in payload["comparisons"]:
        ch = c["change"]
        if c["current"]["totalIncome"] or c["prev1"]["totalIncome"]:
            change_lines.append(
                f"- {c['assembly']}: income {ch['incomeVsPrev1']:+.1f}%, "
                f"attendance {ch['attendanceVsPrev1']:+.1f}%, tithes {ch['tithesVsPrev1']:+.1f}% "
                f"vs {c['prev1']['month']}"
            )

    return "\n".join(
        [
            f"# Monthly Financial & Numerical Report: {payload['month']}",
            "",
            "## 1. Executive Summary",
            f"{len(reporting)} of {len(payload['assemblies'])} assemblies reported for {payload['month']}. "
            f"District income was {money(totals['totalIncome'])} with {count(totals['totalAttendance'])} "
            "unique attendees (corrected figures).",
            "",
            "## 2. District Totals Overview",
            _district_totals_block(totals),
            "",
            "## 3. Assembly Performance Table",
            _monthly_table(payload["assemblies"], comparisons),
            "",
            "## 4. Month-over-Month Change",
            "\n".join(change_lines) or "No comparable data in the previous month.",
            "",
            "## 5. Top 3 Assemblies (corrected attendance)",
            _ranked(reporting[:3]),
            "",
            "## 6. Bottom 3 Assemblies",
            _ranked(list(reversed(reporting[-3:]))),
            "",
            "## 7. Data Quality",
            f"Assemblies without reports: {', '.join(silent) or 'none'}.",
            f"Attendance was reduced by {totals['attendanceCorrectionPct']:.0f}% after overlap correction.",
            "",
            f"_{ATTENDANCE_NOTE}_",
        ]
    )
