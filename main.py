#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Interactive DCF (EBITDA-discount)

Inputs: EBITDA by fiscal year (entered directly or derived from an income
statement with optional % adjustments), discount rate, perpetuity growth
rate and corporate tax rate, all in percent.

Key calculations:
- FCF_t = EBITDA_t − tax (tax only when EBITDA_t > 0)
- EV    = Σ FCF_t / (1+r)^t + TV / (1+r)^N,
  with TV = FCF_N × (1+g) / (r − g)
"""

import sys
from typing import Optional

import pandas as pd

from valuation.data import StorageError, get_data_service
from valuation.data.storage import DCFModel
from valuation.dcf import (
    ExchangeRateBook,
    IncomeStatementAdjustment,
    IncomeStatementEntry,
    MissingExchangeRateError,
    ValuationError,
    ValuationWorkspace,
    default_dataset,
    default_scenarios,
    format_currency,
    format_currency_short,
    format_percentage,
    value_bridge,
)


# ----------------------------- prompt helpers -----------------------------
def prompt_str(msg: str, default: Optional[str] = None) -> str:
    try:
        s = input(f"{msg}{' [' + default + ']' if default is not None else ''}: ").strip()
    except EOFError:
        s = ""
    return s if s else (default or "")

def prompt_float(msg: str, default: Optional[float]) -> Optional[float]:
    shown = f"{default:,.4f}" if default is not None else "NA"
    try:
        s = input(f"{msg} [default {shown}]: ").strip().replace(",", "")
    except EOFError:
        s = ""
    if s == "":
        return default
    try:
        return float(s)
    except ValueError:
        print("Invalid number. Using default.")
        return default

def prompt_yes(msg: str, default: str = "n") -> bool:
    return prompt_str(msg, default).lower() in ("y", "yes", "1")


# ----------------------------- input sections -----------------------------
def choose_dataset():
    presets = {"default": default_dataset()}
    for scenario in default_scenarios():
        presets[scenario.label.split()[-1].lower()] = scenario

    print("\n--- Starting point ---")
    print("Presets: " + ", ".join(presets))
    name = prompt_str("Preset", "default").lower()
    if name not in presets:
        print(f"Unknown preset '{name}'. Using default.")
        name = "default"
    return presets[name]

def edit_ebitda(ws: ValuationWorkspace) -> None:
    print("\n--- EBITDA by fiscal year (Enter keeps the current value) ---")
    for year in sorted(ws.dataset.ebitda_data):
        value = prompt_float(f"EBITDA {ws.dataset.fiscal_label(year)}", ws.dataset.ebitda_data[year])
        ws.set_ebitda(year, value)

    while prompt_yes("Add another year? (y/n)"):
        last = max(ws.dataset.ebitda_data) if ws.dataset.ebitda_data else 2024
        year = int(prompt_float("Fiscal year", last + 1))
        ws.set_ebitda(year, prompt_float(f"EBITDA FY{year}", 0.0))

    actuals = prompt_str("Years that are actuals, comma separated (blank for none)", "")
    try:
        ws.set_historical_years(int(y) for y in actuals.replace(" ", "").split(",") if y)
    except ValueError:
        print("Invalid year list. Keeping previous actuals.")

def edit_income_statement(ws: ValuationWorkspace) -> None:
    print("\n--- Income statement by fiscal year ---")
    for year in sorted(ws.dataset.ebitda_data):
        print(f"\nFY{year}")
        entry = IncomeStatementEntry(
            revenue=prompt_float("  Revenue", 0.0),
            cogs=prompt_float("  COGS", 0.0),
            sga=prompt_float("  SG&A", 0.0),
            depreciation=prompt_float("  Depreciation", 0.0),
            amortization=prompt_float("  Amortization", 0.0),
        )
        ws.set_income_statement_entry(year, entry)
        if prompt_yes("  Apply % adjustments for this year? (y/n)"):
            ws.set_adjustment(year, IncomeStatementAdjustment(
                revenue_adjustment=prompt_float("  Revenue adjustment (0.1 = +10%)", 0.0),
                cogs_adjustment=prompt_float("  COGS adjustment", 0.0),
                sga_adjustment=prompt_float("  SG&A adjustment", 0.0),
            ))
    ws.set_use_income_statement(True)

def edit_parameters(ws: ValuationWorkspace) -> None:
    p = ws.dataset.parameters
    print("\n--- Valuation parameters (percent; press Enter to use default) ---")
    discount = prompt_float("Discount rate / WACC (%)", p.discount_rate)
    perpetuity = prompt_float("Perpetuity growth rate (%)", p.perpetuity_rate)
    while not discount > perpetuity:
        print("Discount rate must be greater than perpetuity growth rate (r > g). Please re-enter.")
        discount = prompt_float("Discount rate / WACC (%)", p.discount_rate)
        perpetuity = prompt_float("Perpetuity growth rate (%)", p.perpetuity_rate)

    tax = prompt_float("Corporate tax rate (%)", p.corporate_tax_rate)
    while not 0 <= tax <= 100:
        print("Tax rate must be between 0 and 100.")
        tax = prompt_float("Corporate tax rate (%)", p.corporate_tax_rate)

    ws.set_parameters(discount_rate=discount, perpetuity_rate=perpetuity, corporate_tax_rate=tax)

def choose_currency(ws: ValuationWorkspace, book: ExchangeRateBook) -> None:
    current = ws.dataset.base_currency
    target = prompt_str(f"\nDisplay currency (data is in {current})", current).upper()
    if target == current:
        return
    try:
        stored = book.get_rate(current, target)
    except MissingExchangeRateError:
        stored = None
    rate = prompt_float(f"Exchange rate {current} -> {target}", stored)
    if rate is None or rate <= 0:
        print("No valid rate; keeping original currency.")
        return
    book.update_rate(current, target, rate)
    ws.convert(target, rate)


# ----------------------------- output -----------------------------
def print_results(ws: ValuationWorkspace) -> None:
    res = ws.results()
    currency = ws.dataset.base_currency

    table = ws.breakdown()
    table["historical"] = table["historical"].map({True: "actual", False: "projected"})

    print("\n--- Present value breakdown ---")
    with pd.option_context("display.width", 120):
        print(table.drop(columns=["year"]).to_string(
            index=False,
            float_format=lambda x: f"{x:,.2f}",
        ))

    bridge = value_bridge(res)
    print("\n--- Value bridge ---")
    for step, amount in zip(bridge["step"], bridge["amount"]):
        print(f"{step:<20} {format_currency_short(amount, currency):>12}")

    p = ws.dataset.parameters
    print("\n--- Summary ---")
    print(f"Mode: {'income statement' if ws.dataset.use_income_statement else 'direct EBITDA'}")
    print(f"Discount rate {format_percentage(p.discount_rate)}, perpetuity "
          f"{format_percentage(p.perpetuity_rate)}, tax {format_percentage(p.corporate_tax_rate)}")
    print(f"PV of projections:  {format_currency(res.projections_pv, currency)}")
    print(f"Terminal value:     {format_currency(res.terminal_value, currency)}")
    print(f"PV terminal value:  {format_currency(res.terminal_value_pv, currency)}")
    print(f"\nEnterprise value:   {format_currency(res.enterprise_value, currency)}")


# ----------------------------- main -----------------------------
def main():
    print("\n=== DCF (EBITDA-discount) | Gordon Growth terminal value ===")
    ws = ValuationWorkspace(choose_dataset())
    book = ExchangeRateBook()

    if prompt_yes("Derive EBITDA from an income statement? (y/n)"):
        edit_income_statement(ws)
    else:
        edit_ebitda(ws)

    edit_parameters(ws)
    choose_currency(ws, book)

    try:
        print_results(ws)
    except ValuationError as e:
        print(f"DCF failed: {e}")
        sys.exit(1)

    if prompt_yes("\nSave this model? (y/n)"):
        name = prompt_str("Model name", ws.dataset.label or "Untitled model")
        company = prompt_str("Company name (optional)", "") or None
        try:
            service = get_data_service()
            model_id = service.save_model(DCFModel(
                model_name=name,
                company_name=company,
                dataset=ws.dataset,
                results=ws.results(),
            ))
        except StorageError as e:
            print(f"Save failed: {e}")
            sys.exit(1)
        print(f"Saved: {model_id}")

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
