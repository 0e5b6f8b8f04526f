#!/usr/bin/env python3
"""
Initialize the Supabase `tickets` table with a direct PostgreSQL connection
"""
import os
import psycopg2
from dotenv import load_dotenv

load_dotenv()

TABLE_NAME = os.getenv("TICKETS_TABLE", "tickets")


def get_connection():
    """Get PostgreSQL connection using .env variables"""
    host = os.getenv("SUPABASE_DB_HOST")
    port = int(os.getenv("SUPABASE_DB_PORT", "6543"))
    database = os.getenv("SUPABASE_DB_NAME", "postgres")
    user = os.getenv("SUPABASE_DB_USER")
    password = os.getenv("SUPABASE_DB_PASSWORD")

    print(f"🔗 Connecting to: {host}:{port}")
    print(f"   Database: {database}")
    print(f"   User: {user}")

    return psycopg2.connect(
        host=host,
        port=port,
        database=database,
        user=user,
        password=password
    )


def create_schema():
    """Create the tickets table, indexes and realtime publication"""

    ddl_sql = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),

        -- Customer info
        customer TEXT,
        customer_id TEXT,

        -- Ticket details
        subject TEXT,
        message TEXT,
        status TEXT DEFAULT 'new' CHECK (status IN ('new', 'in-progress', 'resolved')),
        priority TEXT DEFAULT 'medium' CHECK (priority IN ('low', 'medium', 'high')),

        -- AI analysis
        sentiment TEXT DEFAULT 'neutral',
        category TEXT,
        suggested_response TEXT,
        ai_analysis JSONB,

        -- Client-side creation time (display, relative time, daily histogram)
        timestamp TEXT,
        responses_sent JSONB DEFAULT '[]'::jsonb,

        -- Metadata
        channel TEXT DEFAULT 'web',
        assigned_to TEXT,
        resolved BOOLEAN DEFAULT FALSE,
        resolved_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ DEFAULT NOW(),
        updated_at TIMESTAMPTZ
    );

    CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_status ON {TABLE_NAME}(status);
    CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_created_at ON {TABLE_NAME}(created_at DESC);
    """

    # Realtime needs the table in the supabase_realtime publication
    realtime_sql = f"""
    DO $$
    BEGIN
        IF NOT EXISTS (
            SELECT 1 FROM pg_publication_tables
            WHERE pubname = 'supabase_realtime' AND tablename = '{TABLE_NAME}'
        ) THEN
            ALTER PUBLICATION supabase_realtime ADD TABLE {TABLE_NAME};
        END IF;
    END $$;
    """

    conn = None
    try:
        conn = get_connection()
        cur = conn.cursor()

        print(f"🔧 Creating table {TABLE_NAME}...")
        cur.execute(ddl_sql)
        conn.commit()
        print("✅ DDL executed successfully")

        print("📡 Enabling realtime...")
        cur.execute(realtime_sql)
        conn.commit()
        print("✅ Realtime publication updated")

        cur.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}")
        count = cur.fetchone()[0]
        print(f"\n📊 {TABLE_NAME}: {count} records")

        cur.close()
        return True

    except Exception as e:
        print(f"❌ Error: {str(e)}")
        if conn:
            conn.rollback()
        return False
    finally:
        if conn:
            conn.close()


if __name__ == "__main__":
    import sys
    success = create_schema()
    sys.exit(0 if success else 1)
