"""
End-to-end demonstration of the alert evaluation pipeline.

This script exercises:
1. Configuration loading and validation
2. Reading ingestion into the ReadingStore
3. Rule, trend and correlation evaluation for each patient
4. Priority annotation and repeated re-firing of alerts
5. The periodic evaluation driver

Run with: uv run python demo_system.py
"""

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vitalwatch.config import AppConfig, MonitoringConfig, get_config
from vitalwatch.domain.models import AlertLike, InvalidReading, ReadingKind
from vitalwatch.services.alert_engine import AlertEngine
from vitalwatch.services.channel import AlertChannel
from vitalwatch.services.correlation import HYPOTENSIVE_HYPOXEMIA
from vitalwatch.services.decorators import PriorityDecorator, RepeatingDecorator
from vitalwatch.services.monitor import PatientMonitor
from vitalwatch.services.reading_store import ReadingStore

console = Console()

# (patient_id, value, kind, timestamp)
SCENARIOS: dict[str, list[tuple[int, float, ReadingKind, int]]] = {
    "stable": [
        (1, 120.0, ReadingKind.SYSTOLIC_PRESSURE, 1_000),
        (1, 80.0, ReadingKind.DIASTOLIC_PRESSURE, 1_000),
        (1, 0.97, ReadingKind.OXYGEN_SATURATION, 1_000),
        (1, 0.1, ReadingKind.ECG, 1_000),
    ],
    "hypotensive_hypoxemia": [
        (2, 80.0, ReadingKind.SYSTOLIC_PRESSURE, 2_000),
        (2, 0.80, ReadingKind.OXYGEN_SATURATION, 2_000),
    ],
    "pressure_swing": [
        (3, 100.0, ReadingKind.SYSTOLIC_PRESSURE, 3_000),
        (3, 125.0, ReadingKind.SYSTOLIC_PRESSURE, 3_001),
        (3, 70.0, ReadingKind.DIASTOLIC_PRESSURE, 3_000),
        (3, 130.0, ReadingKind.DIASTOLIC_PRESSURE, 3_001),
    ],
}


def load_scenarios(store: ReadingStore) -> None:
    for readings in SCENARIOS.values():
        for patient_id, value, kind, timestamp in readings:
            store.append(patient_id, value, kind, timestamp)


def alerts_table(title: str, alerts: list[AlertLike]) -> Table:
    table = Table(title=title)
    table.add_column("Patient", style="cyan")
    table.add_column("Condition", style="magenta")
    table.add_column("Timestamp", style="yellow")
    for alert in alerts:
        table.add_row(str(alert.patient_id), alert.condition, str(alert.timestamp))
    return table


def check_configuration() -> bool:
    console.print(Panel("Configuration", style="blue"))
    try:
        config = get_config()
        console.print(f"Environment: {config.environment}", style="green")
        console.print(f"Evaluation interval: {config.monitoring.evaluation_interval_seconds}s")
        console.print(f"Systolic bounds: {config.thresholds.systolic_low}-{config.thresholds.systolic_high}")
        return True
    except Exception as e:
        console.print(f"Configuration failed: {e}", style="red")
        return False


def check_engine() -> bool:
    console.print(Panel("Alert Engine", style="blue"))
    store = ReadingStore()
    load_scenarios(store)

    delivered: list[AlertLike] = []
    engine = AlertEngine(store, delivered.append)
    for patient_id in sorted(store.all_patient_ids()):
        engine.evaluate(patient_id)

    console.print(alerts_table("Fired Alerts", delivered))
    return any(a.condition == HYPOTENSIVE_HYPOXEMIA for a in delivered)


def check_rejection() -> bool:
    console.print(Panel("Invalid Readings", style="blue"))
    store = ReadingStore()
    for value, timestamp in [(float("nan"), 1), (80.0, -5)]:
        try:
            store.append(1, value, ReadingKind.SYSTOLIC_PRESSURE, timestamp)
        except InvalidReading as e:
            console.print(f"Rejected: {e}", style="yellow")
        else:
            return False
    return True


async def check_decorators() -> bool:
    console.print(Panel("Alert Decorators", style="blue"))
    store = ReadingStore()
    load_scenarios(store)
    delivered: list[AlertLike] = []
    engine = AlertEngine(store, delivered.append)

    raw = next(a for a in engine.collect(2) if a.condition == HYPOTENSIVE_HYPOXEMIA)
    repeating = RepeatingDecorator(PriorityDecorator(raw, "CRITICAL"), 0.2, engine, 2)
    repeating.trigger(delivered.append)
    await asyncio.sleep(0.5)
    repeating.stop()

    console.print(alerts_table("Delivered (initial + re-fires)", delivered))
    return len(delivered) >= 2


async def check_monitor() -> bool:
    console.print(Panel("Periodic Evaluation", style="blue"))
    config = AppConfig(
        monitoring=MonitoringConfig(
            evaluation_interval_seconds=0.2,
            priority_levels={HYPOTENSIVE_HYPOXEMIA: "CRITICAL"},
        )
    )
    channel = AlertChannel(handlers=[lambda alert: None])
    monitor = PatientMonitor(config=config, channel=channel)
    load_scenarios(monitor.store)

    consumer = asyncio.create_task(channel.consume())
    cycles = 0
    async for report in monitor.run_continuously():
        cycles += 1
        console.print(
            f"Cycle {cycles}: {report.patients_evaluated} patients, {report.alerts_fired} alerts"
        )
        if cycles >= 3:
            break
    await monitor.stop()
    channel.close()
    await consumer

    console.print(alerts_table("Channel History (last cycle)", list(channel.history)[-6:]))
    return cycles == 3


async def run_all_checks() -> None:
    console.print(Panel("Vital-Sign Alert Engine - System Checks", style="bold blue"))

    checks = [
        ("Configuration", check_configuration),
        ("Alert Engine", check_engine),
        ("Invalid Readings", check_rejection),
        ("Alert Decorators", check_decorators),
        ("Periodic Evaluation", check_monitor),
    ]

    results = []
    for name, check in checks:
        console.print(f"\n{'=' * 60}")
        try:
            result = check()
            if asyncio.iscoroutine(result):
                result = await result
            results.append((name, result))
        except Exception as e:
            console.print(f"{name} failed with exception: {e}", style="red")
            results.append((name, False))

    summary_table = Table(title="Results")
    summary_table.add_column("Check", style="cyan")
    summary_table.add_column("Result", style="white")
    for name, result in results:
        summary_table.add_row(name, "PASSED" if result else "FAILED")
    console.print(summary_table)


if __name__ == "__main__":
    try:
        asyncio.run(run_all_checks())
    except KeyboardInterrupt:
        console.print("\nStopped by user", style="yellow")
