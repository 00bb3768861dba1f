#!/usr/bin/env python3
"""
agentcollab - Basic Usage Example

Talks to a running agentcollab server: asks a question, streams a second
one, and executes the workflow the agents proposed.

Prerequisites:
    pip install "agentcollab[server,openai]"
    agentcollab serve

Usage:
    export AGENTCOLLAB_URL=http://localhost:8000
    python basic_usage.py
"""

import os

from agentcollab import AgentCollabClient, NotFoundError


def main():
    base_url = os.getenv("AGENTCOLLAB_URL", "http://localhost:8000")

    with AgentCollabClient(base_url=base_url, user_id="example-user") as client:

        # 1. Discover the service
        print("1. Discovering service...")
        discovery = client.discover()
        print(f"   Agents: {', '.join(discovery['agents'])}")

        # 2. Give the agents some context about the company
        print("\n2. Updating Roxy's memory...")
        client.update_agent_memory(
            "roxy", context={"company": "Acme Analytics", "stage": "seed"}
        )

        # 3. Ask a question; routing picks the primary agent
        print("\n3. Asking a question...")
        result = client.chat("I need to decide whether to raise prices")
        primary = result["primary_response"]
        print(f"   [{result['primary_agent_id']}] {primary['content'][:80]}")
        for response in result["collaboration_responses"]:
            print(f"   [{response['agent_id']}] {response['content'][:80]}")

        # 4. Stream a follow-up
        print("\n4. Streaming a follow-up...")
        for event in client.stream_chat("What metrics should we watch after launch?"):
            if event.is_done:
                break
            print(f"   {event.type.value}: {event.data.get('content', '')[:60]}")

        # 5. Execute the proposed workflow
        workflow = result["workflow"]
        if workflow:
            print(f"\n5. Executing workflow {workflow['id']}...")
            done = client.execute_workflow(workflow["id"], timeout=300)
            print(f"   Status: {done['status']}")
            for agent_id, step in done["results"].items():
                if agent_id != "error":
                    print(f"   - {agent_id}: {step['content'][:60]}")
        else:
            print("\n5. No workflow proposed")

        # 6. Insights
        print("\n6. Collaboration insights...")
        insights = client.insights()
        print(f"   Collaborations: {insights['total_collaborations']}")
        print(f"   Workflows: {insights['workflow_stats']['total']}")

        try:
            client.get_workflow("workflow_missing")
        except NotFoundError as e:
            print(f"\n   Expected error: {e}")

        print("\nDone!")


if __name__ == "__main__":
    main()
