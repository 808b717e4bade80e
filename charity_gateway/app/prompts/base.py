"""Prompt template models."""

from typing import Any, Callable, Dict, List, Literal, Mapping

from pydantic import BaseModel, Field


class PromptArgument(BaseModel):
    name: str
    description: str
    required: bool = False


class PromptMessageContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class PromptMessage(BaseModel):
    role: Literal["user", "assistant"] = "user"
    content: PromptMessageContent


class PromptResult(BaseModel):
    """A rendered prompt: a description and the messages to send."""
    description: str
    messages: List[PromptMessage]


Renderer = Callable[[Mapping[str, Any]], str]


class Prompt(BaseModel):
    """A named template that renders to a single user message."""
    name: str
    description: str
    arguments: List[PromptArgument] = Field(default_factory=list)
    result_description: str
    render: Renderer = Field(exclude=True)

    def definition(self) -> Dict[str, Any]:
        return self.model_dump(include={"name", "description", "arguments"})

    def get(self, arguments: Mapping[str, Any]) -> PromptResult:
        return PromptResult(
            description=self.result_description,
            messages=[PromptMessage(content=PromptMessageContent(text=self.render(arguments)))],
        )


def arg(arguments: Mapping[str, Any], name: str) -> str:
    """String value of an optional argument, empty when absent."""
    value = arguments.get(name)
    return str(value) if value else ""
