# src/turbodash_kpi/application/seeds/bp_2026.py
# Copyright (c) Turbodash.
# SPDX-License-Identifier: MIT
"""BP-2026 baseline plan.

Purpose:
    Static business plan for 2026: the metric registry and twelve monthly
    targets per metric. Loaded by ``SeedBaselineUseCase``.

Layer:
    application/seeds

Notes:
    PCT targets are stored as ratios (``0.17`` means 17%), matching what
    the derived formulas produce.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from turbodash_kpi.domain.entities.metric import MONTHS, MetricDefinition, MonthlyTarget
from turbodash_kpi.domain.enums.kpi import MetricDirection, MetricKind, MetricUnit, PeriodType

BP_YEAR = 2026


@dataclass(frozen=True, slots=True)
class PlanMetric:
    """One metric of the plan with its monthly targets (January first)."""

    definition: MetricDefinition
    targets: tuple[Decimal, ...]

    def monthly_targets(self, year: int = BP_YEAR) -> list[MonthlyTarget]:
        """Return the plan values as MonthlyTarget rows of ``year``."""
        return [
            MonthlyTarget(
                year=year, month=month, metric_key=self.definition.key, target_value=value
            )
            for month, value in zip(MONTHS, self.targets, strict=True)
        ]


def _base(
    key: str,
    title: str,
    unit: MetricUnit,
    period_type: PeriodType,
    direction: MetricDirection,
    targets: Sequence[str],
) -> PlanMetric:
    return PlanMetric(
        definition=MetricDefinition(
            key=key,
            title=title,
            kind=MetricKind.BASE,
            unit=unit,
            period_type=period_type,
            direction=direction,
        ),
        targets=tuple(Decimal(v) for v in targets),
    )


def _derived(
    key: str,
    title: str,
    unit: MetricUnit,
    period_type: PeriodType,
    direction: MetricDirection,
    formula: str,
    targets: Sequence[str],
) -> PlanMetric:
    return PlanMetric(
        definition=MetricDefinition(
            key=key,
            title=title,
            kind=MetricKind.DERIVED,
            unit=unit,
            period_type=period_type,
            direction=direction,
            formula=formula,
        ),
        targets=tuple(Decimal(v) for v in targets),
    )


BP_2026_PLAN: tuple[PlanMetric, ...] = (
    _base(
        "mrr_active",
        "MRR Ativo",
        MetricUnit.BRL,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        ("1156850", "1267734", "1368637", "1485460", "1591769", "1688510",
         "1806544", "1913955", "2011699", "2130646", "2238888", "2337388"),
    ),
    _base(
        "sales_mrr",
        "Vendas MRR",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("215000", "215000", "215000", "240000", "240000", "240000",
         "270000", "270000", "270000", "300000", "300000", "300000"),
    ),
    _base(
        "revenue_one_time",
        "Receita Pontual",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("240000", "280000", "270000", "288333", "306667", "325000",
         "343333", "361667", "380000", "398333", "416667", "435000"),
    ),
    _base(
        "revenue_other",
        "Outras Receitas",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("24767", "21600", "20267", "34037", "34037", "25703",
         "45973", "45973", "49587", "87927", "87927", "87927"),
    ),
    _derived(
        "revenue_billable_total",
        "Receita Total Faturável",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "mrr_active + revenue_one_time + revenue_other",
        ("1421617", "1569334", "1658904", "1807830", "1932472", "2039213",
         "2195850", "2321595", "2441285", "2616906", "2743481", "2860315"),
    ),
    _base(
        "bad_debt",
        "Perdas / Inadimplência",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("99513", "109853", "116123", "108470", "115948", "122353",
         "131751", "139296", "146477", "157014", "164609", "171619"),
    ),
    _base(
        "taxes_on_revenue",
        "Impostos sobre Receita",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("146247", "160603", "169308", "185757", "198001", "208486",
         "223872", "236224", "247981", "265233", "277666", "289143"),
    ),
    _derived(
        "revenue_net",
        "Receita Líquida",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "revenue_billable_total - bad_debt - taxes_on_revenue",
        ("1175857", "1298878", "1373473", "1513603", "1618523", "1708374",
         "1840227", "1946075", "2046827", "2194659", "2301206", "2399553"),
    ),
    _base(
        "cogs_csv",
        "CSV (Custo Serviços Vendidos)",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("392504", "407706", "436438", "475848", "497651", "516746",
         "577633", "602414", "616990", "659609", "672624", "697685"),
    ),
    _derived(
        "gross_margin",
        "Margem Bruta",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "revenue_net - cogs_csv",
        ("783352", "891171", "937036", "1037755", "1120872", "1191628",
         "1262594", "1343661", "1429837", "1535050", "1628582", "1701868"),
    ),
    _base(
        "cac_total",
        "CAC (Custo Aquisição)",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("287296", "290796", "316796", "336374", "421374", "361374",
         "452725", "370725", "383725", "419577", "404577", "427577"),
    ),
    _base(
        "sga_total",
        "SG&A (Despesas Adm.)",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("410130", "296477", "290518", "296633", "299429", "303725",
         "437438", "309683", "311030", "335494", "347141", "369337"),
    ),
    _derived(
        "ebitda",
        "EBITDA",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "gross_margin - cac_total - sga_total",
        ("85927", "303899", "329722", "404749", "400070", "526529",
         "372431", "663253", "735082", "779979", "876864", "904954"),
    ),
    _base(
        "tax_ir_csll",
        "IR/CSLL",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("29215", "103325", "112105", "137614", "136024", "179020",
         "126627", "225506", "249928", "265193", "298134", "307684"),
    ),
    _base(
        "capex",
        "CAPEX",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("32500", "32500", "32500", "32500", "32500", "32500",
         "32500", "32500", "32500", "32500", "32500", "32500"),
    ),
    _derived(
        "cash_generation",
        "Geração de Caixa",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "ebitda - tax_ir_csll - capex",
        ("24212", "168073", "185117", "234634", "231546", "315009",
         "213304", "405247", "452654", "482286", "546230", "564770"),
    ),
    _derived(
        "cash_generation_margin_pct",
        "Margem Geração Caixa %",
        MetricUnit.PCT,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "cash_generation / revenue_billable_total",
        ("0.0209", "0.1326", "0.1353", "0.1580", "0.1455", "0.1866",
         "0.1181", "0.2117", "0.2250", "0.2264", "0.2440", "0.2416"),
    ),
    _base(
        "revenue_total",
        "Receita Total",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("1322104", "1459480", "1542781", "1699360", "1816524", "1916860",
         "2064099", "2182299", "2294808", "2459892", "2578872", "2688696"),
    ),
    _base(
        "expense_total",
        "Despesa Total",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("1297892", "1291407", "1357664", "1464726", "1584978", "1601851",
         "1850795", "1777052", "1842154", "1977605", "2032642", "2123926"),
    ),
    _base(
        "headcount_total",
        "Headcount Total",
        MetricUnit.COUNT,
        PeriodType.MONTH_END,
        MetricDirection.FLAT,
        ("126", "129", "138", "143", "147", "151",
         "158", "163", "166", "172", "175", "179"),
    ),
    _base(
        "clients_active",
        "Clientes Ativos",
        MetricUnit.COUNT,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        ("290", "319", "340", "365", "388", "409",
         "434", "458", "479", "505", "530", "552"),
    ),
    _base(
        "contracts_active",
        "Contratos Ativos",
        MetricUnit.COUNT,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        ("415", "456", "486", "521", "555", "585",
         "620", "655", "686", "722", "758", "789"),
    ),
    _base(
        "churn_mrr_month",
        "Churn MRR Mensal",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.DOWN,
        ("104117", "114096", "123177", "133691", "143259", "151966",
         "162589", "172256", "181053", "191758", "201500", "210365"),
    ),
    _derived(
        "effective_tax_rate_pct",
        "Taxa Efetiva Impostos %",
        MetricUnit.PCT,
        PeriodType.MONTH_SUM,
        MetricDirection.FLAT,
        "taxes_on_revenue / revenue_billable_total",
        ("0.1234", "0.1682", "0.1696", "0.1789", "0.1728", "0.1900",
         "0.1596", "0.1989", "0.2040", "0.2027", "0.2099", "0.2087"),
    ),
    _base(
        "cash_balance",
        "Saldo de Caixa",
        MetricUnit.BRL,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        ("624212", "792285", "977401", "1212035", "1443581", "1758591",
         "1971895", "2377142", "2829796", "3312082", "3858312", "4423082"),
    ),
    _base(
        "headcount_bucket_csv",
        "Headcount CSV",
        MetricUnit.COUNT,
        PeriodType.MONTH_END,
        MetricDirection.FLAT,
        ("87", "89", "96", "100", "104", "107",
         "114", "118", "120", "125", "128", "131"),
    ),
    _base(
        "headcount_bucket_cac",
        "Headcount CAC",
        MetricUnit.COUNT,
        PeriodType.MONTH_END,
        MetricDirection.FLAT,
        ("27", "28", "30", "31", "31", "31",
         "31", "32", "33", "34", "34", "35"),
    ),
    _base(
        "headcount_bucket_sga",
        "Headcount SG&A",
        MetricUnit.COUNT,
        PeriodType.MONTH_END,
        MetricDirection.FLAT,
        ("12", "12", "12", "12", "12", "13",
         "13", "13", "13", "13", "13", "13"),
    ),
    _derived(
        "revenue_per_head",
        "Receita por Cabeça",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        "revenue_billable_total / headcount_total",
        ("11283", "12165", "12021", "12642", "13146", "13505",
         "13898", "14243", "14707", "15215", "15677", "15979"),
    ),
    _derived(
        "mrr_per_head",
        "MRR por Cabeça",
        MetricUnit.BRL,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        "mrr_active / headcount_total",
        ("9181", "9827", "9918", "10388", "10828", "11182",
         "11434", "11742", "12119", "12387", "12794", "13058"),
    ),
    _derived(
        "avg_ticket_client",
        "Ticket Médio Cliente",
        MetricUnit.BRL,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        "mrr_active / clients_active",
        ("4899", "4924", "4883", "4959", "4976", "4986",
         "5065", "5068", "5092", "5186", "5178", "5184"),
    ),
    _derived(
        "avg_ticket_contract",
        "Ticket Médio Contrato",
        MetricUnit.BRL,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        "mrr_active / contracts_active",
        ("3426", "3443", "3415", "3468", "3480", "3487",
         "3542", "3544", "3561", "3626", "3621", "3625"),
    ),
    _base(
        "sales_mrr_total_target",
        "Meta Vendas MRR Total",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("215000", "215000", "215000", "240000", "240000", "240000",
         "270000", "270000", "270000", "300000", "300000", "300000"),
    ),
    _base(
        "sales_mrr_new_target",
        "Meta Vendas MRR Novos",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("200000", "200000", "200000", "220000", "220000", "220000",
         "240000", "240000", "240000", "260000", "260000", "260000"),
    ),
    _base(
        "sales_mrr_monetization_target",
        "Meta Monetização MRR",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("15000", "15000", "15000", "20000", "20000", "20000",
         "30000", "30000", "30000", "40000", "40000", "40000"),
    ),
    _base(
        "sales_performance_share_pct",
        "% Performance Vendas",
        MetricUnit.PCT,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("0.30", "0.30", "0.30", "0.30", "0.30", "0.30",
         "0.30", "0.30", "0.30", "0.30", "0.30", "0.30"),
    ),
    _base(
        "sales_mrr_performance_target",
        "Meta MRR Performance",
        MetricUnit.BRL,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("64500", "64500", "64500", "72000", "72000", "72000",
         "81000", "81000", "81000", "90000", "90000", "90000"),
    ),
    _base(
        "aov_performance",
        "AOV Performance",
        MetricUnit.BRL,
        PeriodType.MONTH_END,
        MetricDirection.UP,
        ("3000", "3000", "3000", "3000", "3000", "3000",
         "3000", "3000", "3000", "3000", "3000", "3000"),
    ),
    _base(
        "contracts_performance",
        "Contratos Performance",
        MetricUnit.COUNT,
        PeriodType.MONTH_SUM,
        MetricDirection.UP,
        ("22", "22", "22", "24", "24", "24",
         "27", "27", "27", "30", "30", "30"),
    ),
)


__all__ = ["BP_2026_PLAN", "BP_YEAR", "PlanMetric"]
