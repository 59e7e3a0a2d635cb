"""Aplicación de consola - Aasira Courses."""

from __future__ import annotations

import asyncio
import logging
import sys

from ..api.client import HttpProgressStore
from ..config import Config, get_config
from ..core.controller import LIST, MODULE, QUIZ, RESULTS, CourseController
from ..core.course import CourseCatalog
from ..core.persistence import FileProgressStore, ProgressStore, ProgressStoreError
from ..core.quiz import QuizTimer, format_remaining
from ..core.session_store import JsonFileKeyValueStore
from ..core.state import COMPLETED, LOCKED, UNLOCKED, User

if sys.platform == "win32":
    import colorama
    colorama.init()

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    LOCKED: "\033[90m🔒 bloqueado\033[0m",
    UNLOCKED: "\033[36m▶ disponible\033[0m",
    COMPLETED: "\033[32m✓ completado\033[0m",
}


def build_progress_store(config: Config) -> ProgressStore:
    """REST si hay API configurada; si no, archivos locales."""
    if config.api_url:
        return HttpProgressStore(config.api_url, config.api_token, config.api_timeout)
    return FileProgressStore(config.progress_dir)


class CoursesApp:
    """Cursos de consola: módulos secuenciales y quizzes cronometrados."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()
        self.user = User(
            id=self.config.user_id,
            username=self.config.username,
            role=self.config.role,
        )
        self.catalog = CourseCatalog.load(self.config.content_file)
        self.progress_store = build_progress_store(self.config)
        self.controller = CourseController(
            self.user,
            self.catalog,
            self.progress_store,
            JsonFileKeyValueStore(self.config.session_dir),
            duration=self.config.quiz_duration,
            threshold=self.config.pass_threshold,
        )
        self.timer: QuizTimer | None = None
        self.running = True

    # Salida

    def print_header(self) -> None:
        """Imprimir encabezado."""
        print("\033[35m" + "=" * 50 + "\033[0m")
        print("\033[35m" + f"        {self.config.app_name}" + "\033[0m")
        print("\033[35m" + f"    {self.catalog.title}" + "\033[0m")
        print("\033[35m" + "=" * 50 + "\033[0m")
        print()

    def print_info(self, message: str) -> None:
        """Imprimir mensaje informativo."""
        print(f"\033[38;5;208mℹ {message}\033[0m")

    def print_success(self, message: str) -> None:
        """Imprimir mensaje de éxito."""
        print(f"\033[32m✓ {message}\033[0m")

    def print_error(self, message: str) -> None:
        """Imprimir mensaje de error."""
        print(f"\033[31m✗ {message}\033[0m")

    async def get_input(self, prompt: str = "> ") -> str:
        """Leer input sin bloquear el temporizador."""
        return (await asyncio.to_thread(input, f"\033[38;5;208m{prompt}\033[0m")).strip()

    def show_welcome(self) -> None:
        """Mostrar mensaje de bienvenida."""
        self.print_header()
        self.print_info(f"Bienvenido, {self.user.username}.")
        self.print_info("Escribe 'help' para ver todos los comandos")
        print()

    def show_list(self) -> None:
        """Lista de módulos con progreso."""
        summary = self.controller.tracker.summary()
        filled = summary.percentage // 5
        bar = "█" * filled + "░" * (20 - filled)
        print(f"Progreso: [{bar}] {summary.percentage}%")
        print(f"{summary.completed} de {summary.total} módulos completados.\n")
        for module, status in self.controller.module_cards():
            print(f"  {module.id:>2}. {module.title:<40} {STATUS_LABELS[status]}")
        print()

    def show_module(self) -> None:
        """Texto y vídeos del módulo seleccionado."""
        module = self.controller.selected_module
        if module is None:
            return
        print(f"\033[35m{module.title}\033[0m  (Módulo {module.id})\n")
        for paragraph in module.paragraphs:
            print(paragraph)
            print()
        if module.video_links:
            print("\033[35mVídeos relacionados\033[0m")
            for link in module.video_links:
                print(f"  • {link.title}: {link.url}")
        print()
        self.print_info("Escribe 'quiz' para hacer el test o 'back' para volver")

    def show_question(self) -> None:
        """Pregunta actual con opciones y tiempo restante."""
        session = self.controller.session
        if session is None:
            return
        question = session.current_question
        remaining = session.time_remaining()
        color = "\033[31m" if remaining < 60 else "\033[36m"
        print(
            f"Pregunta {session.current_index + 1} de {session.total}   "
            f"{color}⏱ {format_remaining(remaining)}\033[0m"
        )
        print(f"\033[1m{question.question}\033[0m")
        for idx, option in enumerate(question.options, 1):
            mark = "●" if session.current_answer == option else "○"
            print(f"  {idx}. {mark} {option}")
        if session.can_submit():
            self.print_info("Escribe 'submit' para enviar")
        elif session.can_advance():
            self.print_info("Escribe 'next' para continuar")

    def show_results(self) -> None:
        """Resultado del último quiz."""
        result = self.controller.last_result
        if result is None:
            return
        print(f"Has obtenido {result.score} de {result.total}.")
        if result.passed:
            self.print_success("¡Enhorabuena, has aprobado!")
            self.print_info("El siguiente módulo se ha desbloqueado.")
        else:
            self.print_error("No has aprobado. Inténtalo de nuevo.")
        self.print_info("Escribe 'retake' para repetir o 'back' para volver")

    def render(self) -> None:
        view = self.controller.view_mode
        if view == LIST:
            self.show_list()
        elif view == MODULE:
            self.show_module()
        elif view == QUIZ:
            self.show_question()
        elif view == RESULTS:
            self.show_results()

    # Temporizador

    def _start_timer(self) -> None:
        session = self.controller.session
        if session is None:
            return
        self.timer = QuizTimer(session, self.config.tick_interval, on_tick=self._on_tick)
        self.timer.start()

    def _on_tick(self, remaining: int) -> None:
        if remaining == 60:
            print()
            self.print_info("Queda 1 minuto")
        elif remaining == 0:
            print()
            self.print_error("Tiempo agotado: el quiz se ha enviado automáticamente")
            self.show_results()

    def _stop_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    # Bucle

    async def run(self) -> None:
        """Ejecutar la aplicación."""
        self.show_welcome()
        if self.controller.view_mode == QUIZ:
            self.print_info("Quiz en curso recuperado")
            self._start_timer()
        self.render()

        while self.running:
            try:
                command = await self.get_input()
                if not command:
                    continue
                await self.process_command(command)
            except (KeyboardInterrupt, EOFError):
                print("\n\033[33m¡Hasta luego!\033[0m")
                break
            except Exception as e:
                logger.exception("Error procesando comando")
                self.print_error(f"Error: {e}")
                continue

        self._stop_timer()
        self.controller.tracker.flush()
        self.progress_store.close()

    async def process_command(self, command: str) -> None:
        """Procesar comando del usuario."""
        parts = command.split()
        cmd = parts[0].lower()
        args = parts[1:]

        if self.controller.view_mode == QUIZ and cmd.isdigit():
            await self.cmd_answer([cmd])
            return

        handlers = {
            "help": self.cmd_help,
            "list": self.cmd_list,
            "open": self.cmd_open,
            "quiz": self.cmd_quiz,
            "answer": self.cmd_answer,
            "next": self.cmd_next,
            "submit": self.cmd_submit,
            "retake": self.cmd_retake,
            "back": self.cmd_back,
            "history": self.cmd_history,
            "all": self.cmd_all,
            "quit": self.cmd_quit,
            "exit": self.cmd_quit,
            "q": self.cmd_quit,
        }

        handler = handlers.get(cmd)
        if handler:
            await handler(args)
        else:
            self.print_error(f"Comando desconocido: {cmd}")
            self.print_info("Escribe 'help' para ver los comandos disponibles")

    async def cmd_help(self, args) -> None:
        """Mostrar ayuda."""
        print("""
Comandos:
  list            Ver módulos y progreso
  open <id>       Abrir un módulo desbloqueado
  quiz            Empezar el test del módulo abierto (10 minutos)
  <n> | answer <n>  Elegir la opción n de la pregunta actual
  next            Siguiente pregunta
  submit          Enviar el quiz (en la última pregunta)
  retake          Repetir el quiz
  back            Volver a la lista (abandona el quiz en curso)
  history         Historial de resultados
  all             Progreso de todos los estudiantes (organizadores)
  quit            Salir
""")

    async def cmd_list(self, args) -> None:
        if self.controller.view_mode == QUIZ:
            self.print_error("Termina el quiz o escribe 'back' para abandonarlo")
            return
        self.show_list()

    async def cmd_open(self, args) -> None:
        """Abrir módulo."""
        if not args or not args[0].isdigit():
            self.print_error("Uso: open <id>")
            return
        module_id = int(args[0])
        if self.controller.catalog.get_module(module_id) is None:
            self.print_error(f"Módulo {module_id} no encontrado")
            return
        if not self.controller.select_module(module_id):
            self.print_error(f"El módulo {module_id} está bloqueado")
            return
        self._stop_timer()
        self.show_module()

    async def cmd_quiz(self, args) -> None:
        """Empezar quiz."""
        if self.controller.selected_module is None:
            self.print_error("No hay módulo seleccionado. Usa 'open <id>'.")
            return
        self._stop_timer()
        self.controller.start_quiz()
        if self.controller.view_mode == QUIZ:
            self._start_timer()
        self.render()

    async def cmd_answer(self, args) -> None:
        """Seleccionar respuesta."""
        session = self.controller.session
        if session is None:
            self.print_error("No hay un quiz en curso")
            return
        if not args:
            self.print_error("Uso: answer <n>")
            return
        options = session.current_question.options
        raw = " ".join(args)
        if raw.isdigit() and 1 <= int(raw) <= len(options):
            option = options[int(raw) - 1]
        else:
            option = raw
        if not session.select_answer(option):
            self.print_error("Opción no válida")
            return
        self.show_question()

    async def cmd_next(self, args) -> None:
        session = self.controller.session
        if session is None:
            self.print_error("No hay un quiz en curso")
            return
        if not session.advance():
            self.print_error("Selecciona una respuesta antes de continuar")
            return
        self.show_question()

    async def cmd_submit(self, args) -> None:
        session = self.controller.session
        if session is None:
            self.print_error("No hay un quiz en curso")
            return
        if not session.can_submit():
            self.print_error("Responde la última pregunta antes de enviar")
            return
        self.controller.submit()
        self._stop_timer()
        self.show_results()

    async def cmd_retake(self, args) -> None:
        if self.controller.view_mode not in (RESULTS, MODULE):
            self.print_error("No hay un quiz que repetir")
            return
        await self.cmd_quiz(args)

    async def cmd_back(self, args) -> None:
        self._stop_timer()
        self.controller.return_to_list()
        self.show_list()

    async def cmd_history(self, args) -> None:
        """Historial de resultados de quiz."""
        loader = getattr(self.progress_store, "load_quiz_results", None)
        if loader is None:
            self.print_error("El almacén de progreso no guarda historial")
            return
        try:
            results = loader(self.user.id)
        except ProgressStoreError as e:
            self.print_error(f"No se pudo cargar el historial: {e}")
            return
        if not results:
            self.print_info("Todavía no hay resultados")
            return
        for r in results:
            mark = "\033[32m✓\033[0m" if r.passed else "\033[31m✗\033[0m"
            print(f"  {mark} Módulo {r.module_id}: {r.score}/{r.total}  {r.completed_at:%Y-%m-%d %H:%M}")

    async def cmd_all(self, args) -> None:
        """Progreso de todos los usuarios (solo organizadores)."""
        if not self.user.is_organizer:
            self.print_error("Solo los organizadores pueden ver el progreso de todos")
            return
        loader = getattr(self.progress_store, "load_all", None)
        if loader is None:
            self.print_error("El almacén de progreso no lo permite")
            return
        try:
            documents = loader()
        except ProgressStoreError as e:
            self.print_error(f"No se pudo cargar el progreso: {e}")
            return
        for doc in documents:
            statuses = doc.get("module_statuses", doc.get("moduleStatuses", []))
            completed = sum(1 for s in statuses if s.get("status") == COMPLETED)
            user = doc.get("user_id", doc.get("userId", "?"))
            print(f"  {user}: {completed}/{len(statuses)} módulos completados")

    async def cmd_quit(self, args) -> None:
        """Salir (el quiz en curso queda guardado para reanudarlo)."""
        print("\033[33m¡Hasta luego!\033[0m")
        self.running = False
