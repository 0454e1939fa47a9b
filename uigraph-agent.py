#!/usr/bin/env python3
import argparse
import asyncio
import os
import sys
import traceback

from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from uigraph_agent.agents import CodeGenerationAgent, ExplorationAgent
from uigraph_agent.browser import PlaywrightCodeRunner, fetch_page_html, load_browser_tools
from uigraph_agent.data import CreateFeatureInput, CreateProjectInput, CreateScenarioInput
from uigraph_agent.graph import GraphError, GraphStore
from uigraph_agent.llm import build_chat_model
from uigraph_agent.services import GraphServices
from uigraph_agent.utils.config import (
    agent_settings,
    codegen_settings,
    database_path,
    find_config_file,
    load_yaml,
    validate_and_build_llm_config,
)
from uigraph_agent.utils.get_log import GetLog


async def check_playwright_browsers_async():
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True)
            await browser.close()
        print("✅ Playwright browsers available")
        return True
    except PlaywrightError as e:
        print(f"⚠️ Playwright browsers unavailable: {e}")
        return False


def open_services(cfg):
    store = GraphStore(database_path(cfg))
    store.init_db()
    return GraphServices(store)


def build_model(cfg):
    try:
        return build_chat_model(validate_and_build_llm_config(cfg))
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)


def cmd_init_db(cfg, args):
    open_services(cfg)
    print(f"✅ Database ready: {database_path(cfg)}")


def cmd_create_project(cfg, args):
    target = cfg.get("target") or {}
    name = args.name or target.get("name")
    url = args.url or target.get("url")
    if not name or not url:
        print("[ERROR] Project name and url are required (arguments or target section)", file=sys.stderr)
        sys.exit(1)
    project = open_services(cfg).projects.create(CreateProjectInput(name=name, url=url))
    print(f"✅ Created project {project.id} ({project.name}, {project.url})")


def read_text_argument(args):
    if args.file:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    return args.text


def cmd_add_feature(cfg, args):
    feature = open_services(cfg).features.create(
        CreateFeatureInput(project_id=args.project_id, name=args.name, description=args.description)
    )
    print(f"✅ Created feature {feature.id} ({feature.name})")


def cmd_add_scenario(cfg, args):
    scenario = open_services(cfg).scenarios.save_scenario(
        CreateScenarioInput(
            feature_id=args.feature_id,
            title=args.title,
            description=args.description,
            given=args.given,
            when=args.when,
            then=args.then,
        )
    )
    print(f"✅ Created scenario {scenario.id} ({scenario.title})")


async def cmd_extract(cfg, args):
    text = read_text_argument(args)
    if not text or not text.strip():
        print("[ERROR] Requirements text is empty", file=sys.stderr)
        sys.exit(1)
    services = open_services(cfg)
    chat_model = build_model(cfg)

    features = await services.features.extract_features(chat_model, args.project_id, text)
    print(f"📝 Extracted {len(features)} feature(s)")
    for feature, scenarios in await services.features.save_features(chat_model, args.project_id, features):
        print(f"   - Feature {feature.id}: {feature.name} ({len(scenarios)} scenario(s))")
        for scenario in scenarios:
            print(f"       • Scenario {scenario.id}: {scenario.title}")


async def cmd_generate_labels(cfg, args):
    services = open_services(cfg)
    services.projects.find_one(args.project_id)
    if args.html_file:
        with open(args.html_file, "r", encoding="utf-8") as f:
            html = f.read()
    else:
        html = await fetch_page_html(args.url)
    chat_model = build_model(cfg)

    labels = await services.labels.auto_generate_labels(chat_model, args.project_id, args.url, html)
    for data in labels:
        label = services.labels.save_label(data)
        print(f"   - Label {label.id}: {label.name} -> {label.selector}")
    print(f"🏷️ Saved {len(labels)} label(s) for {args.url}")


async def cmd_explore(cfg, args):
    services = open_services(cfg)
    settings = agent_settings(cfg)
    chat_model = build_model(cfg)
    browser_tools = await load_browser_tools(cfg.get("browser_mcp"))

    agent = ExplorationAgent(
        services,
        chat_model,
        browser_tools=browser_tools,
        max_turns=int(settings["max_turns"]),
        timeout=float(settings["timeout_seconds"]),
    )
    result = await agent.explore(args.project_id)
    print(f"🔎 Exploration {result.status.value} after {result.turns} turn(s)")
    print(
        f"   - Pages: {result.graph.pages}, UI states: {result.graph.ui_states}, "
        f"edges: {result.graph.edges}, labels: {result.graph.labels}"
    )
    if result.error:
        print(f"❌ {result.error}", file=sys.stderr)
        sys.exit(1)


async def cmd_generate(cfg, args):
    print("🔍 Checking Playwright browsers...")
    if not await check_playwright_browsers_async():
        print("Please manually run: `playwright install` to install browser binaries, then retry.", file=sys.stderr)
        sys.exit(1)

    services = open_services(cfg)
    settings = codegen_settings(cfg)
    chat_model = build_model(cfg)
    browser_tools = await load_browser_tools(cfg.get("browser_mcp"))
    runner = PlaywrightCodeRunner(
        work_dir=settings["work_dir"], timeout=float(settings["execution_timeout_seconds"])
    )

    agent = CodeGenerationAgent(
        services,
        chat_model,
        runner,
        browser_tools=browser_tools,
        max_attempts=int(settings["max_attempts"]),
        max_turns=int(settings["max_turns"]),
        timeout=float(settings["timeout_seconds"]),
    )
    result = await agent.generate(args.scenario_id, project_url=args.url)
    print(f"✅ Scenario passed on attempt {result.attempts}")
    print(result.code)


def parse_args():
    parser = argparse.ArgumentParser(description="UI Graph Agent Entry Point")
    parser.add_argument("--config", "-c", help="YAML configuration file path (optional, default auto-search config/config.yaml)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the graph database")

    create = subparsers.add_parser("create-project", help="Register a site to explore")
    create.add_argument("--name", help="Project name (default: target.name)")
    create.add_argument("--url", help="Root URL (default: target.url)")

    feature = subparsers.add_parser("add-feature", help="Add a feature to a project")
    feature.add_argument("project_id")
    feature.add_argument("--name", required=True)
    feature.add_argument("--description")

    scenario = subparsers.add_parser("add-scenario", help="Add a Given/When/Then scenario to a feature")
    scenario.add_argument("feature_id")
    scenario.add_argument("--title", required=True)
    scenario.add_argument("--given", required=True)
    scenario.add_argument("--when", required=True)
    scenario.add_argument("--then", required=True)
    scenario.add_argument("--description")

    extract = subparsers.add_parser("extract", help="Extract features and scenarios from a requirements text")
    extract.add_argument("project_id")
    source = extract.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Requirements text file")
    source.add_argument("--text", help="Requirements text")

    labels = subparsers.add_parser("generate-labels", help="Label the interactive elements of a page")
    labels.add_argument("project_id")
    labels.add_argument("--url", required=True, help="Page URL")
    labels.add_argument("--html-file", help="Saved HTML of the page (default: load the page with Playwright)")

    explore = subparsers.add_parser("explore", help="Explore a project's site and record its UI-state graph")
    explore.add_argument("project_id")

    generate = subparsers.add_parser("generate", help="Generate and repair the Playwright script of a scenario")
    generate.add_argument("scenario_id")
    generate.add_argument("--url", help="Override the project URL")
    return parser.parse_args()


def main():
    load_dotenv()
    args = parse_args()

    try:
        config_path = find_config_file(args.config, script_dir=os.path.dirname(os.path.abspath(__file__)))
        cfg = load_yaml(config_path)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)

    GetLog.get_log(level=(cfg.get("log") or {}).get("level", "info"))

    try:
        if args.command == "init-db":
            cmd_init_db(cfg, args)
        elif args.command == "create-project":
            cmd_create_project(cfg, args)
        elif args.command == "add-feature":
            cmd_add_feature(cfg, args)
        elif args.command == "add-scenario":
            cmd_add_scenario(cfg, args)
        elif args.command == "extract":
            asyncio.run(cmd_extract(cfg, args))
        elif args.command == "generate-labels":
            asyncio.run(cmd_generate_labels(cfg, args))
        elif args.command == "explore":
            asyncio.run(cmd_explore(cfg, args))
        elif args.command == "generate":
            asyncio.run(cmd_generate(cfg, args))
    except GraphError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        print("Run failed, stack trace:", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
