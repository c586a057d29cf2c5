# app/services/aggregation.py
"""Folds report documents into totals, breakdowns and ratios.

Everything here works on plain dicts shaped like ``as_document()`` output
(camelCase keys, ``records`` list) and never touches the database. A value
that is missing or does not parse as a finite number contributes 0; nothing
here raises on bad numeric input.
"""
from __future__ import annotations

import math
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.config import DEFAULT_OVERLAP_RATIO
from app.services.periods import normalize_assembly, period_sort_key

SUNDAY_MONEY_FIELDS: Tuple[str, ...] = (
    "tithes",
    "offerings",
    "specialOfferings",
    "etf",
    "pastorsWarfare",
    "vigil",
    "thanksgiving",
    "retirees",
    "missionaries",
    "youthOfferings",
    "districtSupport",
)
SUNDAY_OFFERING_FIELDS: Tuple[str, ...] = SUNDAY_MONEY_FIELDS[1:]
SUNDAY_ATTENDANCE_FIELDS: Tuple[str, ...] = ("attendance", "sbsAttendance", "visitors")

WEEK_FIELDS: Tuple[str, ...] = ("week1", "week2", "week3", "week4", "week5")
OFFERING_CELL_FIELDS: Tuple[str, ...] = WEEK_FIELDS + tuple(
    f"{day}Week{i}" for day in ("tuesday", "thursday") for i in range(1, 6)
)

SERVICE_TYPES: Tuple[str, ...] = ("sunday", "midweek", "special")


# ─────────────────────────────────────────────────────────────────────────────
# Numeric primitives
# ─────────────────────────────────────────────────────────────────────────────

def num(value: Any) -> float:
    """Coerce to float; missing, invalid and non-finite values become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        if isinstance(value, str):
            value = value.replace(",", "").strip()
        out = float(value)
    except (TypeError, ValueError):
        return 0.0
    return out if math.isfinite(out) else 0.0


def safe_div(numerator: Any, denominator: Any) -> float:
    d = num(denominator)
    if d == 0:
        return 0.0
    return num(numerator) / d


def percent(part: Any, whole: Any) -> float:
    return safe_div(part, whole) * 100


def percent_change(prev: Any, current: Any) -> float:
    """Change from prev to current in percent; 0 -> x reads as 100."""
    p, c = num(prev), num(current)
    if p == 0 and c == 0:
        return 0.0
    if p == 0:
        return 100.0
    return (c - p) / abs(p) * 100


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def unique_attendance(main: Any, sbs: Any, ratio: float = DEFAULT_OVERLAP_RATIO) -> Tuple[float, float]:
    """Estimated unique attendees of a service with an adjacent Bible study.

    A share ``ratio`` of the smaller count is assumed to have attended both.
    Returns ``(unique, overlap)``; unique always lies in
    [max(main, sbs), main + sbs].
    """
    m, s = max(num(main), 0.0), max(num(sbs), 0.0)
    if m > 0 and s > 0:
        overlap = min(m, s) * ratio
        estimate = float(round_half_up(m + s - overlap))
        return min(max(estimate, max(m, s)), m + s), overlap
    return m + s, 0.0


# ─────────────────────────────────────────────────────────────────────────────
# Per-record figures
# ─────────────────────────────────────────────────────────────────────────────

def sunday_totals(record: Dict[str, Any]) -> Dict[str, float]:
    """Derived Sunday figures: total (all money), totalOfferings (no tithes), totalAttendance."""
    return {
        "total": sum(num(record.get(f)) for f in SUNDAY_MONEY_FIELDS),
        "totalOfferings": sum(num(record.get(f)) for f in SUNDAY_OFFERING_FIELDS),
        "totalAttendance": sum(num(record.get(f)) for f in SUNDAY_ATTENDANCE_FIELDS),
    }


def record_income(record: Dict[str, Any], service_type: str = "sunday") -> float:
    if service_type == "midweek":
        return num(record.get("total")) or num(record.get("offering"))
    if service_type == "special":
        return num(record.get("offering"))
    if record.get("total") is None:
        return sunday_totals(record)["total"]
    return num(record.get("total"))


def record_raw_attendance(record: Dict[str, Any], service_type: str = "sunday") -> float:
    """Attendance as historically summed (main + SBS for Sunday), visitors excluded."""
    if service_type == "sunday":
        return num(record.get("attendance")) + num(record.get("sbsAttendance"))
    return num(record.get("attendance"))


def record_corrected_attendance(
    record: Dict[str, Any], service_type: str = "sunday", ratio: float = DEFAULT_OVERLAP_RATIO
) -> float:
    """unique(main, SBS) for Sunday, visitors excluded; attendance otherwise."""
    if service_type == "sunday":
        unique, _ = unique_attendance(record.get("attendance"), record.get("sbsAttendance"), ratio)
        return unique
    return num(record.get("attendance"))


def record_attendance(
    record: Dict[str, Any], service_type: str = "sunday", ratio: float = DEFAULT_OVERLAP_RATIO
) -> float:
    """Head count: corrected attendance plus visitors for Sunday, attendance otherwise."""
    corrected = record_corrected_attendance(record, service_type, ratio)
    if service_type == "sunday":
        return corrected + num(record.get("visitors"))
    return corrected


def _service_type(doc: Dict[str, Any]) -> str:
    st = str(doc.get("serviceType") or "sunday").lower()
    return st if st in SERVICE_TYPES else "sunday"


def _records(doc: Dict[str, Any]) -> List[Dict[str, Any]]:
    recs = doc.get("records")
    return [r for r in recs if isinstance(r, dict)] if isinstance(recs, list) else []


def document_totals(doc: Dict[str, Any], ratio: float = DEFAULT_OVERLAP_RATIO) -> Dict[str, float]:
    """Income/attendance figures of one document.

    Documents without a ``records`` list (already-summarised rows sent by a
    client) contribute their own ``totalIncome``/``totalAttendance``.
    """
    st = _service_type(doc)
    if not isinstance(doc.get("records"), list):
        attendance = num(doc.get("totalAttendance"))
        return {
            "income": num(doc.get("totalIncome")),
            "tithes": num(doc.get("totalTithes")),
            "attendance": attendance,
            "raw": attendance,
            "corrected": attendance,
            "overlap": 0.0,
            "visitors": 0.0,
            "records": 0.0,
        }

    out = dict.fromkeys(
        ("income", "tithes", "attendance", "raw", "corrected", "overlap", "visitors", "records"), 0.0
    )
    for rec in _records(doc):
        out["income"] += record_income(rec, st)
        out["raw"] += record_raw_attendance(rec, st)
        out["records"] += 1
        if st == "sunday":
            unique, overlap = unique_attendance(rec.get("attendance"), rec.get("sbsAttendance"), ratio)
            visitors = num(rec.get("visitors"))
            out["tithes"] += num(rec.get("tithes"))
            out["corrected"] += unique
            out["overlap"] += overlap
            out["visitors"] += visitors
            out["attendance"] += unique + visitors
        else:
            att = num(rec.get("attendance"))
            out["corrected"] += att
            out["attendance"] += att
    return out


def sum_fields(documents: Iterable[Dict[str, Any]], fields: Sequence[str]) -> Dict[str, float]:
    """Flat per-field sums over every record of every document."""
    totals = dict.fromkeys(fields, 0.0)
    for doc in documents:
        for rec in _records(doc):
            for f in fields:
                totals[f] += num(rec.get(f))
    return totals


# ─────────────────────────────────────────────────────────────────────────────
# Service-report summaries
# ─────────────────────────────────────────────────────────────────────────────

def service_summary(
    tagged_documents: Iterable[Dict[str, Any]], ratio: float = DEFAULT_OVERLAP_RATIO
) -> Dict[str, Any]:
    """Summary block over Sunday/midweek/special documents tagged with ``serviceType``."""
    s: Dict[str, Any] = {
        "totalReports": 0,
        "totalRecords": 0,
        "totalIncome": 0.0,
        "totalAttendance": 0.0,
        "rawAttendance": 0.0,
        "correctedAttendance": 0.0,
        "estimatedOverlap": 0.0,
        "sundayTithes": 0.0,
    }
    for st in SERVICE_TYPES:
        s[f"{st}Reports"] = 0
        s[f"{st}Income"] = 0.0
        s[f"{st}Attendance"] = 0.0

    assemblies = set()
    for doc in tagged_documents:
        st = _service_type(doc)
        t = document_totals(doc, ratio)
        assemblies.add(normalize_assembly(doc.get("assembly")))
        s["totalReports"] += 1
        s["totalRecords"] += int(t["records"])
        s[f"{st}Reports"] += 1
        s[f"{st}Income"] += t["income"]
        s[f"{st}Attendance"] += t["attendance"]
        s["totalIncome"] += t["income"]
        s["totalAttendance"] += t["attendance"]
        s["rawAttendance"] += t["raw"]
        s["correctedAttendance"] += t["corrected"]
        s["estimatedOverlap"] += t["overlap"]
        s["sundayTithes"] += t["tithes"]

    s["totalAssemblies"] = len(assemblies)
    s["attendanceCorrection"] = s["rawAttendance"] - s["correctedAttendance"]
    s["attendanceCorrectionPct"] = round(percent(s["attendanceCorrection"], s["rawAttendance"]), 1)
    s["averageIncomePerReport"] = safe_div(s["totalIncome"], s["totalReports"])
    s["averageAttendancePerReport"] = safe_div(s["totalAttendance"], s["totalReports"])
    s["incomePerAttendee"] = safe_div(s["totalIncome"], s["totalAttendance"])
    s["tithePercentage"] = percent(s["sundayTithes"], s["totalIncome"])
    return s


def _empty_assembly(name: str) -> Dict[str, Any]:
    return {
        "assembly": name,
        "totalIncome": 0.0,
        "totalTithes": 0.0,
        "totalAttendance": 0.0,
        "rawAttendance": 0.0,
        "correctedAttendance": 0.0,
        "estimatedOverlap": 0.0,
        "reportCount": 0,
        "recordCount": 0,
        "breakdown": {st: {"income": 0.0, "attendance": 0.0, "reports": 0, "records": 0} for st in SERVICE_TYPES},
    }


def by_assembly(
    tagged_documents: Iterable[Dict[str, Any]],
    ratio: float = DEFAULT_OVERLAP_RATIO,
    roster: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    """Per-assembly totals sorted by income (highest first).

    With ``roster`` every roster assembly appears, zero-filled when silent.
    """
    groups: Dict[str, Dict[str, Any]] = {}
    for name in roster or ():
        key = normalize_assembly(name)
        groups[key] = _empty_assembly(key)

    for doc in tagged_documents:
        key = normalize_assembly(doc.get("assembly")) or "UNKNOWN"
        g = groups.setdefault(key, _empty_assembly(key))
        st = _service_type(doc)
        t = document_totals(doc, ratio)
        g["totalIncome"] += t["income"]
        g["totalTithes"] += t["tithes"]
        g["totalAttendance"] += t["attendance"]
        g["rawAttendance"] += t["raw"]
        g["correctedAttendance"] += t["corrected"]
        g["estimatedOverlap"] += t["overlap"]
        g["reportCount"] += 1
        g["recordCount"] += int(t["records"])
        b = g["breakdown"][st]
        b["income"] += t["income"]
        b["attendance"] += t["attendance"]
        b["reports"] += 1
        b["records"] += int(t["records"])

    out = []
    for g in groups.values():
        g["averageIncome"] = safe_div(g["totalIncome"], g["reportCount"])
        g["averageAttendance"] = safe_div(g["totalAttendance"], g["reportCount"])
        g["incomePerAttendee"] = safe_div(g["totalIncome"], g["totalAttendance"])
        g["tithesPerAttendee"] = safe_div(g["totalTithes"], g["totalAttendance"])
        g["attendanceCorrectionPct"] = round(
            percent(g["rawAttendance"] - g["correctedAttendance"], g["rawAttendance"]), 1
        )
        out.append(g)
    out.sort(key=lambda a: (-a["totalIncome"], a["assembly"]))
    return out


def by_period(documents: Iterable[Dict[str, Any]], ratio: float = DEFAULT_OVERLAP_RATIO) -> List[Dict[str, Any]]:
    """Per-Period sums in calendar order."""
    groups: Dict[str, Dict[str, Any]] = {}
    for doc in documents:
        month = str(doc.get("month") or "")
        g = groups.setdefault(
            month, {"month": month, "income": 0.0, "tithes": 0.0, "attendance": 0.0, "reports": 0, "records": 0}
        )
        t = document_totals(doc, ratio)
        g["income"] += t["income"]
        g["tithes"] += t["tithes"]
        g["attendance"] += t["attendance"]
        g["reports"] += 1
        g["records"] += int(t["records"])
    return sorted(groups.values(), key=lambda g: period_sort_key(g["month"]))


def attendance_summary(sunday_documents: Iterable[Dict[str, Any]], ratio: float = DEFAULT_OVERLAP_RATIO) -> Dict[str, Any]:
    docs = list(sunday_documents)
    sums = sum_fields(docs, SUNDAY_ATTENDANCE_FIELDS)
    corrected = overlap = 0.0
    for doc in docs:
        for rec in _records(doc):
            unique, ov = unique_attendance(rec.get("attendance"), rec.get("sbsAttendance"), ratio)
            corrected += unique
            overlap += ov
    raw_total = sums["attendance"] + sums["sbsAttendance"] + sums["visitors"]
    return {
        **sums,
        "totalAttendance": raw_total,
        "correctedAttendance": corrected,
        "attendanceWithVisitors": corrected + sums["visitors"],
        "estimatedOverlap": overlap,
        "attendanceRate": round(percent(sums["attendance"], raw_total)),
    }


def sunday_offering_summary(sunday_documents: Iterable[Dict[str, Any]]) -> Dict[str, float]:
    """Offering categories of Sunday rows; tithes are not offerings."""
    sums = sum_fields(sunday_documents, SUNDAY_OFFERING_FIELDS)
    named = sums["offerings"] + sums["specialOfferings"] + sums["thanksgiving"]
    total = sum(sums.values())
    return {
        "sundayOffering": sums["offerings"],
        "specialOffering": sums["specialOfferings"],
        "thanksgiving": sums["thanksgiving"],
        "otherOfferings": total - named,
        "totalOffering": total,
        "byField": sums,
    }


def sunday_tithe_weeks(sunday_documents: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Sunday-row tithes grouped by their week label."""
    weekly: Dict[str, float] = defaultdict(float)
    total = 0.0
    rows = 0
    for doc in sunday_documents:
        for rec in _records(doc):
            amount = num(rec.get("tithes"))
            weekly[str(rec.get("week") or "Week 1")] += amount
            total += amount
            rows += 1
    out: Dict[str, Any] = {f"week{i}": weekly.get(f"Week {i}", 0.0) for i in range(1, 6)}
    out.update({"totalTithe": total, "weeklyAverage": safe_div(total, rows), "growth": None})
    return out


# ─────────────────────────────────────────────────────────────────────────────
# Tithe sheets
# ─────────────────────────────────────────────────────────────────────────────

def tithe_row_total(row: Dict[str, Any]) -> float:
    return sum(num(row.get(w)) for w in WEEK_FIELDS)


def tithe_summary(tithe_documents: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    totals = dict.fromkeys(WEEK_FIELDS, 0.0)
    total = 0.0
    rows = 0
    for doc in tithe_documents:
        for rec in _records(doc):
            for w in WEEK_FIELDS:
                totals[w] += num(rec.get(w))
            total += tithe_row_total(rec)
            rows += 1
    return {**totals, "totalTithe": total, "memberRows": rows}


def tithe_statistics(
    tithe_documents: Iterable[Dict[str, Any]], roster: Sequence[str] = ()
) -> Dict[str, Any]:
    """Monthly, per-assembly and overall tithe participation.

    Members are identified by tithe number, or by name when the number is
    blank. A member counts as paid when any week of the selection is > 0.
    """
    docs = list(tithe_documents)
    per_assembly: Dict[str, Dict[str, Any]] = {normalize_assembly(a): {} for a in roster}
    weekly: Dict[str, Dict[str, float]] = defaultdict(lambda: dict.fromkeys(WEEK_FIELDS, 0.0))
    months_seen: Dict[str, set] = defaultdict(set)
    submissions: Dict[str, int] = defaultdict(int)
    by_month: Dict[str, Dict[str, Any]] = {}

    for doc in docs:
        assembly = normalize_assembly(doc.get("assembly")) or "UNKNOWN"
        members = per_assembly.setdefault(assembly, {})
        month = str(doc.get("month") or "")
        months_seen[assembly].add(month)
        submissions[assembly] += 1
        m = by_month.setdefault(month, {"month": month, "assemblies": set(), "totalTithe": 0.0, "totalMembers": 0})
        m["assemblies"].add(assembly)

        for rec in _records(doc):
            key = str(rec.get("titheNumber") or "").strip() or str(rec.get("name") or "").strip().lower()
            if not key:
                continue
            amount = tithe_row_total(rec)
            member = members.setdefault(
                key,
                {
                    "name": str(rec.get("name") or "").strip(),
                    "titheNumber": str(rec.get("titheNumber") or "").strip(),
                    "totalPaid": 0.0,
                    "weeks": dict.fromkeys(WEEK_FIELDS, False),
                },
            )
            member["totalPaid"] += amount
            for w in WEEK_FIELDS:
                value = num(rec.get(w))
                weekly[assembly][w] += value
                member["weeks"][w] = member["weeks"][w] or value > 0
            m["totalTithe"] += amount
            m["totalMembers"] += 1

    by_assembly_out = []
    for assembly, members in per_assembly.items():
        paid = [m for m in members.values() if m["totalPaid"] > 0]
        unpaid = [m for m in members.values() if m["totalPaid"] <= 0]
        total = sum(m["totalPaid"] for m in paid)
        by_assembly_out.append(
            {
                "assembly": assembly,
                "stats": {
                    "totalMembers": len(members),
                    "paidMembers": len(paid),
                    "unpaidMembers": len(unpaid),
                    "totalTithe": total,
                    "averageTithe": safe_div(total, len(paid)),
                    "participationRate": percent(len(paid), len(members)),
                    "submissionCount": submissions.get(assembly, 0),
                    "submissionMonths": sorted(months_seen.get(assembly, ()), key=period_sort_key),
                },
                "weeklyTotals": dict(weekly.get(assembly) or dict.fromkeys(WEEK_FIELDS, 0.0)),
                "paidMembers": sorted(paid, key=lambda m: -m["totalPaid"]),
                "unpaidMembers": unpaid,
            }
        )
    by_assembly_out.sort(key=lambda a: a["assembly"])

    by_month_out = [
        {
            "month": m["month"],
            "assemblies": sorted(m["assemblies"]),
            "totalTithe": m["totalTithe"],
            "totalMembers": m["totalMembers"],
            "averageTithe": safe_div(m["totalTithe"], m["totalMembers"]),
        }
        for m in by_month.values()
    ]
    by_month_out.sort(key=lambda m: period_sort_key(m["month"]), reverse=True)

    overall = {
        "totalAssemblies": len(per_assembly),
        "totalMembers": sum(a["stats"]["totalMembers"] for a in by_assembly_out),
        "totalPaidMembers": sum(a["stats"]["paidMembers"] for a in by_assembly_out),
        "totalUnpaidMembers": sum(a["stats"]["unpaidMembers"] for a in by_assembly_out),
        "grandTotalTithe": sum(a["stats"]["totalTithe"] for a in by_assembly_out),
        "assembliesWithSubmissions": sum(1 for a in by_assembly_out if a["stats"]["submissionCount"] > 0),
        "totalSubmissions": len(docs),
    }
    overall["participationRate"] = percent(overall["totalPaidMembers"], overall["totalMembers"])
    return {"overall": overall, "byAssembly": by_assembly_out, "byMonth": by_month_out}


# ─────────────────────────────────────────────────────────────────────────────
# Offering sheets
# ─────────────────────────────────────────────────────────────────────────────

def offering_row_total(row: Dict[str, Any]) -> float:
    amount = num(row.get("amount"))
    if amount > 0:
        return amount
    return sum(num(row.get(f)) for f in OFFERING_CELL_FIELDS)


def offering_summary(offering_documents: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "totalOffering": 0.0,
        "sundayOffering": 0.0,
        "tuesdayOffering": 0.0,
        "thursdayOffering": 0.0,
        "amountOnly": 0.0,
        "byType": {},
    }
    for doc in offering_documents:
        kind = str(doc.get("type") or "Unspecified")
        for rec in _records(doc):
            total = offering_row_total(rec)
            out["totalOffering"] += total
            out["byType"][kind] = out["byType"].get(kind, 0.0) + total
            if num(rec.get("amount")) > 0:
                out["amountOnly"] += total
                continue
            out["sundayOffering"] += sum(num(rec.get(w)) for w in WEEK_FIELDS)
            out["tuesdayOffering"] += sum(num(rec.get(f"tuesdayWeek{i}")) for i in range(1, 6))
            out["thursdayOffering"] += sum(num(rec.get(f"thursdayWeek{i}")) for i in range(1, 6))
    return out


# ─────────────────────────────────────────────────────────────────────────────
# Roster-level views
# ─────────────────────────────────────────────────────────────────────────────

def assembly_status(
    roster: Sequence[str],
    sunday_documents: Iterable[Dict[str, Any]],
    period: str,
    ratio: float = DEFAULT_OVERLAP_RATIO,
) -> Dict[str, Dict[str, Any]]:
    """Per roster assembly: completed (has ``period``), partial (older data only) or pending."""
    grouped: Dict[str, List[Dict[str, Any]]] = {normalize_assembly(a): [] for a in roster}
    for doc in sunday_documents:
        grouped.setdefault(normalize_assembly(doc.get("assembly")), []).append(doc)

    out: Dict[str, Dict[str, Any]] = {}
    for assembly, docs in grouped.items():
        if any(d.get("month") == period for d in docs):
            status = "completed"
        elif docs:
            status = "partial"
        else:
            status = "pending"
        stamps = [d.get("createdAt") for d in docs if d.get("createdAt")]
        sums = sum_fields(docs, ("tithes",))
        offerings = sum_fields(docs, SUNDAY_OFFERING_FIELDS)
        out[assembly] = {
            "hasData": bool(docs),
            "lastUpdate": max(stamps) if stamps else None,
            "status": status,
            "summary": {
                "totalIncome": sum(document_totals(d, ratio)["income"] for d in docs),
                "totalTithe": sums["tithes"],
                "totalOffering": sum(offerings.values()),
                "totalAttendance": sum(document_totals(d, ratio)["attendance"] for d in docs),
            },
        }
    return out


def income_concentration(per_assembly: Sequence[Dict[str, Any]], top: int = 3) -> float:
    """Share (%) of income coming from the ``top`` highest-earning assemblies."""
    incomes = sorted((num(a.get("totalIncome")) for a in per_assembly), reverse=True)
    return percent(sum(incomes[:top]), sum(incomes))


def income_standard_deviation(per_assembly: Sequence[Dict[str, Any]]) -> float:
    incomes = [num(a.get("totalIncome")) for a in per_assembly]
    if not incomes:
        return 0.0
    mean = sum(incomes) / len(incomes)
    return math.sqrt(sum((x - mean) ** 2 for x in incomes) / len(incomes))


def report_completeness(doc: Dict[str, Any]) -> float:
    """Percent of rows that carry both an attendance and an income figure."""
    st = _service_type(doc)
    recs = _records(doc)
    complete = sum(
        1 for r in recs if record_raw_attendance(r, st) + num(r.get("visitors")) > 0 and record_income(r, st) > 0
    )
    return percent(complete, len(recs))


def completeness_label(score: float) -> str:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def reporting_compliance(
    tagged_documents: Iterable[Dict[str, Any]], roster: Sequence[str] = ()
) -> Dict[str, Any]:
    """Share of reports at least 80% complete, and which roster assemblies are silent."""
    docs = list(tagged_documents)
    compliant = sum(1 for d in docs if report_completeness(d) >= 80)
    counts: Dict[str, int] = defaultdict(int)
    for d in docs:
        counts[normalize_assembly(d.get("assembly"))] += 1
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    silent = [normalize_assembly(a) for a in roster if counts.get(normalize_assembly(a), 0) == 0]
    scores = [report_completeness(d) for d in docs]
    return {
        "overall_compliance_rate": percent(compliant, len(docs)),
        "reporting_rate": percent(len([a for a in roster if counts.get(normalize_assembly(a))]), len(roster)),
        "best_performers": [a for a, _ in ranked[:3]],
        "lagging_assemblies": silent,
        "completeness_score": safe_div(sum(scores), len(scores)),
    }
