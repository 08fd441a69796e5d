"""
Admin Metrics

Read-only aggregates behind the admin dashboard:
- overview: totals and 7-day activity
- revenue: payments per month, growth, subscribers
- advanced: users by role and a keyword-based breakdown of user questions
"""
import datetime as dt
from collections import Counter
from decimal import Decimal
from typing import Iterable, Optional

from legalai.models import Advisory, AdvisoryStatus, ChatMessage, ChatSession, MessageRole, Payment, Role, User
from legalai.utils.time import as_utc, iso, utc_now

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

# Keywords are matched as lowercase substrings of each user message
LEGAL_CATEGORIES: dict[str, list[str]] = {
    "Derecho Laboral": [
        "despido", "prestaciones", "indemnización", "liquidación", "contrato de trabajo",
        "salario", "horas extras", "seguridad social", "ars", "afp", "sindicato",
        "reinstalación", "renuncia", "permiso laboral", "jornada laboral", "vacaciones",
        "licencia de maternidad", "licencia de paternidad",
    ],
    "Derecho Familiar": [
        "divorcio", "pensión alimenticia", "custodia", "régimen de visitas", "filiación",
        "tutela", "adopción", "separación de bienes", "bienes gananciales", "concubinato",
        "unión libre", "herencia", "testamento", "partición de bienes", "violencia intrafamiliar",
    ],
    "Derecho Penal": [
        "robo", "hurto", "estafa", "homicidio", "feminicidio", "violación", "agresión",
        "amenaza", "abuso sexual", "corrupción", "lavado de activos", "narcotráfico",
        "secuestro", "delito informático", "acoso", "fraude", "extorsión",
    ],
    "Derecho Civil": [
        "contrato", "arrendamiento", "propiedad", "usufructo", "préstamo", "hipoteca",
        "inquilinato", "responsabilidad civil", "seguro", "daños y perjuicios", "notaría",
        "sucesión",
    ],
    "Derecho Mercantil": [
        "sociedad anónima", "eirl", "accionistas", "estatutos sociales", "capital social",
        "quiebra", "concurso de acreedores", "fusión", "empresa", "factura", "tasa de interés",
        "leasing", "contrato mercantil", "pagaré",
    ],
    "Derecho Administrativo": [
        "permiso", "licencia", "multa", "impuesto", "contratación pública", "licitación",
        "funcionario", "acto administrativo", "derecho de petición", "procedimiento administrativo",
        "expropiación",
    ],
    "Derecho Constitucional": [
        "derechos fundamentales", "habeas corpus", "amparo", "constitución", "nacionalidad",
        "ciudadanía", "referéndum", "libertad de expresión", "estado de emergencia",
    ],
    "Derecho Inmobiliario": [
        "título de propiedad", "deslinde", "venta de inmueble", "hipoteca", "inquilinato",
        "alquiler", "contrato de compraventa", "arrendamiento", "permuta", "evicción",
    ],
    "Derecho Tributario": [
        "impuesto sobre la renta", "itbis", "declaración jurada", "evasión fiscal",
        "auditoría", "exención fiscal", "tasa aduanera", "retención",
    ],
    "Derecho Internacional": [
        "extradición", "tratado", "visado", "naturalización", "asilo", "migración",
        "convenio internacional", "conflicto de leyes",
    ],
}


def growth_pct(current: float, previous: float) -> float:
    """Percent change; 100 when there is no previous value to compare against."""
    if not previous:
        return 100.0
    return (current - previous) / previous * 100


def _month_start(year: int, month: int) -> dt.datetime:
    # Normalizes month overflow/underflow (e.g. month=0 -> December of year-1)
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return dt.datetime(year, month, 1, tzinfo=dt.timezone.utc)


def _sum(payments: Iterable[Payment]) -> float:
    return float(sum((Decimal(p.amount) for p in payments), Decimal("0")))


def _between(rows, attr: str, start: dt.datetime, end: Optional[dt.datetime] = None) -> list:
    out = []
    for r in rows:
        value = as_utc(getattr(r, attr))
        if value is None or value < start:
            continue
        if end is not None and value >= end:
            continue
        out.append(r)
    return out


async def overview(now: Optional[dt.datetime] = None) -> dict:
    now = now or utc_now()
    week_ago = now - dt.timedelta(days=7)
    two_weeks_ago = now - dt.timedelta(days=14)

    total_users = await User.all().count()
    total_chats = await ChatSession.all().count()
    total_advisories = await Advisory.all().count()
    pending_advisories = await Advisory.filter(status=AdvisoryStatus.PENDING).count()

    new_users = await User.filter(created_at__gte=week_ago).count()
    previous_users = await User.filter(created_at__gte=two_weeks_ago, created_at__lt=week_ago).count()
    new_chats = await ChatSession.filter(created_at__gte=week_ago).count()
    new_advisories = await Advisory.filter(created_at__gte=week_ago).count()
    resolved = await Advisory.filter(status=AdvisoryStatus.REVIEWED, responded_at__gte=week_ago).count()

    reviewed_total = total_advisories - pending_advisories
    return {
        "totalUsers": total_users,
        "totalChats": total_chats,
        "totalAdvisories": total_advisories,
        "pendingAdvisories": pending_advisories,
        "weeklyStats": {
            "newUsers": new_users,
            "newChats": new_chats,
            "newAdvisories": new_advisories,
            "resolvedAdvisories": resolved,
        },
        "userGrowth": growth_pct(new_users, previous_users),
        "advisoryResolutionRate": (reviewed_total / total_advisories * 100) if total_advisories else 0.0,
    }


async def revenue(now: Optional[dt.datetime] = None) -> dict:
    now = now or utc_now()
    this_month = _month_start(now.year, now.month)
    next_month = _month_start(now.year, now.month + 1)
    prev_month = _month_start(now.year, now.month - 1)
    year_start = _month_start(now.year, 1)
    window_start = _month_start(now.year, now.month - 11)

    payments = await Payment.filter(created_at__gte=min(window_start, year_start)).order_by("created_at")

    current = _between(payments, "created_at", this_month, next_month)
    previous = _between(payments, "created_at", prev_month, this_month)
    ytd = _between(payments, "created_at", year_start)

    monthly = []
    for i in range(11, -1, -1):
        start = _month_start(now.year, now.month - i)
        end = _month_start(now.year, now.month - i + 1)
        rows = _between(payments, "created_at", start, end)
        monthly.append({
            "month": MONTH_ABBR[start.month - 1],
            "year": start.year,
            "revenue": _sum(rows),
            "subscriptions": len(rows),
        })

    active = await User.filter(role=Role.PAID).count()
    pending = await User.filter(role=Role.PAID, pending_downgrade=True).count()

    recent = await Payment.all().order_by("-created_at").limit(5).prefetch_related("user")
    current_revenue = _sum(current)
    return {
        "currentMonth": {
            "revenue": current_revenue,
            "subscriptions": len(current),
            "growth": growth_pct(current_revenue, _sum(previous)),
        },
        "yearToDate": {"revenue": _sum(ytd), "subscriptions": len(ytd)},
        "activeSubscribers": active,
        "pendingCancellations": pending,
        "monthlyData": monthly,
        "recentPayments": [
            {
                "id": str(p.id),
                "userId": str(p.user_id),
                "userName": p.user.full_name or p.user.username,
                "amount": float(p.amount),
                "createdAt": iso(p.created_at),
            }
            for p in recent
        ],
    }


def categorize(messages: Iterable[str]) -> tuple[Counter, Counter]:
    """Count categories (once per message) and individual keyword hits."""
    categories: Counter = Counter()
    keywords: Counter = Counter()
    for text in messages:
        content = text.lower()
        for category, words in LEGAL_CATEGORIES.items():
            matched = False
            for word in words:
                if word in content:
                    keywords[word] += 1
                    matched = True
            if matched:
                categories[category] += 1
    return categories, keywords


async def advanced(now: Optional[dt.datetime] = None) -> dict:
    now = now or utc_now()
    week_ago = now - dt.timedelta(days=7)
    two_weeks_ago = now - dt.timedelta(days=14)

    users = await User.all().only("id", "role", "pending_downgrade", "created_at")
    total_users = len(users)
    new_users = len(_between(users, "created_at", week_ago))
    user_metrics = {
        "total": total_users,
        "free": sum(1 for u in users if u.role == Role.FREE),
        "paid": sum(1 for u in users if u.role == Role.PAID),
        "admin": sum(1 for u in users if u.role == Role.ADMIN),
        "pendingDowngrade": sum(1 for u in users if u.pending_downgrade),
        "weeklyGrowth": (new_users / total_users * 100) if total_users else 0.0,
    }

    messages = await ChatMessage.filter(role=MessageRole.USER).only("id", "content", "created_at")
    categories, keywords = categorize(m.content for m in messages)
    total = len(messages)
    weekly = len(_between(messages, "created_at", week_ago))
    previous_week = len(_between(messages, "created_at", two_weeks_ago, week_ago))

    return {
        "users": user_metrics,
        "consultations": {
            "total": total,
            "byCategory": [
                {"category": c, "count": n, "percentage": (n / total * 100) if total else 0.0}
                for c, n in categories.most_common()
            ],
            "topKeywords": [{"keyword": k, "count": n} for k, n in keywords.most_common(10)],
            "weeklyTotal": weekly,
            "weeklyGrowth": growth_pct(weekly, previous_week),
        },
    }
