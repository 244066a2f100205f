from typing import Any, ClassVar, Dict

PromptDict = Dict[str, Any]


class PromptMixin:
    """
    Lets callers inspect and replace the prompts of a component and its sub-components.

    Subclasses declare which attributes hold prompts and which hold
    sub-components. Prompts of sub-components are addressed as
    ``"<module>:<prompt>"``.

    Example:
        ```python
        engine.get_prompts()
        # {"response_synthesizer:text_qa_template": PromptTemplate(...)}
        engine.update_prompts({"response_synthesizer:text_qa_template": my_template})
        ```
    """

    # prompt name -> attribute name
    _prompt_attrs: ClassVar[Dict[str, str]] = {}
    # module name -> attribute name
    _prompt_module_attrs: ClassVar[Dict[str, str]] = {}

    def _get_prompts(self) -> PromptDict:
        return {name: getattr(self, attr) for name, attr in self._prompt_attrs.items()}

    def _get_prompt_modules(self) -> Dict[str, "PromptMixin"]:
        modules = {}
        for name, attr in self._prompt_module_attrs.items():
            module = getattr(self, attr, None)
            if isinstance(module, PromptMixin):
                modules[name] = module
        return modules

    def _update_prompts(self, prompts: PromptDict) -> None:
        for name, prompt in prompts.items():
            if name in self._prompt_attrs:
                setattr(self, self._prompt_attrs[name], prompt)

    def get_prompts(self) -> PromptDict:
        """All prompts of this component and, prefixed, of its sub-components."""
        all_prompts = dict(self._get_prompts())
        for module_name, module in self._get_prompt_modules().items():
            for prompt_name, prompt in module.get_prompts().items():
                all_prompts[f"{module_name}:{prompt_name}"] = prompt
        return all_prompts

    def update_prompts(self, prompts: PromptDict) -> None:
        """
        Replace prompts by name.

        Keys without a ``:`` address this component; ``"module:name"`` keys
        are routed to the sub-component. Unknown names are ignored.
        """
        local: PromptDict = {}
        sub_prompts: Dict[str, PromptDict] = {}
        for key, prompt in prompts.items():
            if ":" in key:
                module_name, prompt_name = key.split(":", 1)
                sub_prompts.setdefault(module_name, {})[prompt_name] = prompt
            else:
                local[key] = prompt

        if local:
            self._update_prompts(local)

        modules = self._get_prompt_modules()
        for module_name, module_prompts in sub_prompts.items():
            if module_name in modules:
                modules[module_name].update_prompts(module_prompts)
