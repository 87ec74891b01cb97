"""
Personal board-of-directors conversation engine.

Modules:
- personas: director catalog + PersonaRegistry
- phases: board-meeting PhasePlan + next_phase transition rule
- questions: quick-audit questions with specificity rubrics
- gates: SpecificityGate retry-with-challenge protocol
- orchestrator: ConversationOrchestrator phase/persona state machine
- session: in-memory SessionRunner adapter
- llm / evaluator / agents: LangChain OpenAI client and capability adapters
"""
